import math

import pytest

from errors import LexicalError
from lexer import tokenise, unescape
from utils.ast_utils import TBool, TFunc, TName, TNum, TOp, TPunc, TString


def kinds(source: str) -> list:
    """Helper function that returns the type tag of each token of *source*,
    using the bracket itself for punctuation and the name for operators."""
    out = []
    for tok in tokenise(source):
        if tok.type == "punc":
            out.append(tok.kind)
        elif tok.type == "op":
            out.append(tok.name)
        else:
            out.append(tok.type)
    return out


class TestImplicitMultiplication:
    @pytest.mark.parametrize("implicit, explicit", [
        ("2x", "2*x"),
        ("x y", "x*y"),
        ("2(x+1)", "2*(x+1)"),
        ("(1+2)(3+4)", "(1+2)*(3+4)"),
        ("(a)b", "(a)*b"),
        ("(a)2", "(a)*2"),
        ("x 3", "x*3"),
        ("x (y)", "x*(y)"),
        ("2 3", "2*3"),
        ("pi 2", "pi*2"),
    ], ids=["number-name", "name-name", "number-bracket", "bracket-bracket",
            "bracket-name", "bracket-number", "name-number", "spaced-bracket",
            "number-number", "constant-number"])
    def test_same_tokens_as_explicit(self, implicit, explicit):
        """Juxtaposed values tokenise the same as an explicit product"""
        assert tokenise(implicit) == tokenise(explicit)

    def test_bracket_pair(self):
        assert kinds("(1+2)(3+4)") == ["(", "number", "+", "number", ")", "*",
                                       "(", "number", "+", "number", ")"]

    def test_multiplication_between_numbers(self):
        assert kinds("1 2") == ["number", "*", "number"]

    def test_no_multiplication_after_string(self):
        assert kinds("'a' 2") == ["string", "number"]


class TestFunctionApplication:
    def test_name_followed_by_bracket(self):
        toks = tokenise("sin(x)")
        assert toks[0] == TFunc("sin")
        assert toks[1] == TPunc("(")

    def test_space_before_bracket_is_product(self):
        assert kinds("f (x)") == ["name", "*", "(", "name", ")"]

    def test_constant_as_function(self):
        """A constant's name directly before a bracket is still a call"""
        assert tokenise("e(1)")[0] == TFunc("e")


class TestOperators:
    @pytest.mark.parametrize("source, name, prefix, postfix", [
        ("-x", "-u", True, False),
        ("+x", "+u", True, False),
        ("!x", "not", True, False),
        ("not x", "not", True, False),
        ("x!", "fact", False, True),
    ], ids=["minus", "plus", "bang", "not-word", "factorial"])
    def test_prefix_and_postfix_forms(self, source, name, prefix, postfix):
        op = next(t for t in tokenise(source) if t.type == "op")
        assert (op.name, op.prefix, op.postfix) == (name, prefix, postfix)

    def test_minus_after_operator_is_prefix(self):
        assert kinds("2*-3") == ["number", "*", "-u", "number"]

    def test_minus_after_bracket_is_binary(self):
        assert kinds("(x)-3") == ["(", "name", ")", "-", "number"]

    @pytest.mark.parametrize("source, name", [
        ("a && b", "and"),
        ("a & b", "and"),
        ("a || b", "or"),
        ("a AND b", "and"),
        ("2 divides 6", "|"),
        ("a xor b", "xor"),
        ("a implies b", "implies"),
    ])
    def test_synonyms(self, source, name):
        assert tokenise(source)[1] == TOp(name)

    def test_word_operator_needs_boundary(self):
        """``android`` is a name, not ``and`` followed by ``roid``"""
        assert tokenise("android") == [TName("android")]

    def test_range_and_step(self):
        assert kinds("1..5#2") == ["number", "..", "number", "#", "number"]


class TestLiterals:
    def test_numbers(self):
        assert tokenise("3.25") == [TNum(3.25)]

    @pytest.mark.parametrize("source, value", [
        ("pi", math.pi),
        ("e", math.e),
        ("infinity", math.inf),
        ("i", 1j),
    ])
    def test_constants(self, source, value):
        assert tokenise(source) == [TNum(value)]

    def test_booleans_any_case(self):
        assert tokenise("TRUE or false") == [TBool(True), TOp("or"), TBool(False)]

    @pytest.mark.parametrize("source, value", [
        ('"hello"', "hello"),
        ("'single'", "single"),
        (r'"say \"hi\""', 'say "hi"'),
        (r"'it\'s'", "it's"),
        (r'"a\nb"', "a\nb"),
    ], ids=["double", "single", "escaped-double", "escaped-single", "newline"])
    def test_strings(self, source, value):
        assert tokenise(source) == [TString(value)]

    def test_escaped_braces_stay_escaped(self):
        assert unescape(r"\{x\}") == r"\{x\}"

    def test_annotated_name(self):
        tok = tokenise("vector:v")[0]
        assert tok.name == "v"
        assert tok.annotation == ["vector"]

    def test_primes_and_subscripts(self):
        assert tokenise("x_1'") == [TName("x_1'")]

    def test_pattern_names(self):
        assert kinds("?;x + ??") == ["name", ";", "name", "+", "name"]

    def test_comment_ignored(self):
        assert tokenise("x // the unknown") == [TName("x")]


class TestErrors:
    @pytest.mark.parametrize("source", ["2 @ 3", "x ~ y", "`"])
    def test_invalid_character(self, source):
        with pytest.raises(LexicalError) as info:
            tokenise(source)
        assert info.value.kind == "jme.tokenise.invalid"
