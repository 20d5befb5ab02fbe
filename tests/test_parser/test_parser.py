import pytest

from errors import ParseError
from parser import compile, shunt
from lexer import tokenise
from utils.ast_utils import TFunc, TList, TName, TNum, TOp, Tree, trees_equal


def op(name, *args):
    """Helper function that builds an operator application from child trees."""
    arity = len(args)
    return Tree(TOp(name, arity), args)


def num(x):
    return Tree(TNum(x))


def name(n):
    return Tree(TName(n))


def shape(tree) -> str:
    """Helper function that writes a tree in prefix form, e.g. ``+(2,*(3,4))``,
    so tests can state the expected structure compactly."""
    tok = tree.token
    if tok.type == "number":
        label = f"{tok.value:g}"
    elif tok.type == "name":
        label = tok.name
    elif tok.type == "list":
        label = "list"
    elif tok.type in ("op", "function"):
        label = tok.name
    else:
        label = str(tok.value)
    if tree.args is None:
        return label
    return label + "(" + ",".join(shape(a) for a in tree.args) + ")"


class TestPrecedence:
    @pytest.mark.parametrize("source, expected", [
        ("2+3*4", "+(2,*(3,4))"),
        ("(2+3)*4", "*(+(2,3),4)"),
        ("a-b-c", "-(-(a,b),c)"),
        ("a/b/c", "/(/(a,b),c)"),
        ("2^3^2", "^(2,^(3,2))"),
        ("-x^2", "-u(^(x,2))"),
        ("2^-1", "^(2,-u(1))"),
        ("-2*x", "*(-u(2),x)"),
        ("x!^2", "^(fact(x),2)"),
        ("not a and b", "and(not(a),b)"),
        ("a or b and c", "or(a,and(b,c))"),
        ("x = 1 or y < 2", "or(=(x,1),<(y,2))"),
        ("1..5#2", "#(..(1,5),2)"),
        ("x in 1..5", "in(x,..(1,5))"),
        ("x isa 'number' and true", "and(isa(x,number),True)"),
        ("?;x + ?;y", "+(;(?,x),;(?,y))"),
    ], ids=["times-before-plus", "brackets", "minus-left-assoc", "divide-left-assoc",
            "power-right-assoc", "power-before-negation", "negative-exponent",
            "negation-before-times", "factorial-before-power", "not-before-and",
            "and-before-or", "comparison-before-or", "step-after-range", "range-before-in",
            "isa-before-and", "capture"])
    def test_tree_shape(self, source, expected):
        assert shape(compile(source)) == expected

    def test_explicit_trees(self):
        expected = op("+", num(1), op("*", num(2), name("x")))
        assert trees_equal(compile("1 + 2x"), expected)


class TestFunctionsAndLists:
    def test_function_arity(self):
        tree = compile("f(x, 2, [1, 2])")
        assert tree.token == TFunc("f")
        assert tree.token.arity == 3
        assert shape(tree) == "f(x,2,list(1,2))"

    def test_no_arguments(self):
        tree = compile("f()")
        assert tree.token.arity == 0
        assert tree.args == ()

    def test_nested_calls(self):
        assert shape(compile("max(sin(x), 2*cos(y))")) == "max(sin(x),*(2,cos(y)))"

    @pytest.mark.parametrize("source, expected", [
        ("sqr(x)", "sqrt"),
        ("gcf(4, 6)", "gcd"),
        ("sgn(x)", "sign"),
        ("len([1])", "abs"),
        ("length(x)", "abs"),
    ])
    def test_function_synonyms(self, source, expected):
        assert compile(source).token.name == expected

    def test_list_literal(self):
        tree = compile("[1, x, [2]]")
        assert tree.token == TList(vars=3)
        assert shape(tree) == "list(1,x,list(2))"

    def test_empty_list(self):
        tree = compile("[]")
        assert tree.token.vars == 0
        assert tree.args == ()

    def test_index(self):
        assert shape(compile("x[1]")) == "listval(x,1)"

    def test_index_of_call_and_list(self):
        assert shape(compile("f(y)[0]")) == "listval(f(y),0)"
        assert shape(compile("[1, 2][0]")) == "listval(list(1,2),0)"

    def test_chained_index(self):
        assert shape(compile("m[0][1]")) == "listval(listval(m,0),1)"

    def test_list_after_operator(self):
        assert shape(compile("2 + [1]")) == "+(2,list(1))"


class TestScopeAwareParsing:
    def test_bound_variable_before_bracket_is_product(self, scope):
        scope.set_variable("x", 2)
        tree = compile("x(x+1)", scope)
        assert shape(tree) == "*(x,+(x,1))"
        assert scope.evaluate(tree).value == 6

    def test_function_name_stays_function(self, scope):
        scope.set_variable("sin", 2)
        assert compile("sin(0)", scope).token.type == "function"

    def test_without_scope_it_is_a_call(self):
        assert compile("x(x+1)").token == TFunc("x")


class TestEmptyInput:
    @pytest.mark.parametrize("source", ["", "   ", "\n\t"])
    def test_blank(self, source):
        assert compile(source) is None

    def test_no_tokens(self):
        assert shunt([]) is None


class TestErrors:
    @pytest.mark.parametrize("source, kind", [
        ("(1+2", "jme.shunt.no right bracket"),
        ("f(1", "jme.shunt.no right bracket"),
        ("1+2)", "jme.shunt.no left bracket"),
        ("[1, 2", "jme.shunt.no right square bracket"),
        ("1, 2]", "jme.shunt.no left bracket in function"),
        ("1]", "jme.shunt.no left square bracket"),
        ("'a' 2", "jme.shunt.missing operator"),
        ("(1, 2)", "jme.shunt.no left bracket in function"),
        ("f(1, (2, 3))", "jme.shunt.no left bracket in function"),
        ("2 +", "jme.shunt.not enough args"),
        ("x[1, 2]", "jme.shunt.list index arity"),
    ], ids=["open-bracket", "open-call", "close-bracket", "open-list", "stray-comma",
            "close-list", "missing-operator", "comma-in-brackets", "comma-in-inner-brackets",
            "missing-operand", "index-arity"])
    def test_parse_errors(self, source, kind):
        with pytest.raises(ParseError) as info:
            compile(source)
        assert info.value.kind == kind

    def test_parse_error_is_syntax_error(self):
        with pytest.raises(SyntaxError):
            shunt(tokenise("(("))
