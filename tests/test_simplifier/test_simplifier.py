import pytest

from display import tree_to_jme
from errors import BindingError, ParseError, ResourceError
from library import builtin_scope
from parser import compile
from runtime import Scope
from simplifier import (BUILTIN_RULESETS, Rule, Ruleset, collect_ruleset, compile_pattern, expr_to_latex,
                        match_tree, simplify, simplify_expression)
from utils.ast_utils import trees_equal


def simplified(source: str, rules: str) -> str:
    """Helper function that simplifies *source* with the named rulesets and
    writes the result as JME."""
    return simplify_expression(source, rules, builtin_scope)


def captured(match, name) -> str:
    """Helper function that writes one captured subtree as JME."""
    return tree_to_jme(match[name])


class TestPatterns:
    def test_captures(self):
        m = match_tree("?;a + ?;b", compile("x + 2"))
        assert captured(m, "a") == "x"
        assert captured(m, "b") == "2"

    def test_order_matters_without_commute(self):
        assert match_tree("2 + ?;a", compile("x + 2")) is None

    def test_allow_commute(self):
        m = match_tree("2 + ?;a", compile("x + 2"), allow_commute=True)
        assert captured(m, "a") == "x"

    def test_repeated_capture_must_be_equal(self):
        assert match_tree("?;x + ?;x", compile("y + y")) is not None
        assert match_tree("?;x + ?;x", compile("y + z")) is None

    def test_literal_names(self):
        assert match_tree("sin(x)", compile("sin(x)")) == {}
        assert match_tree("sin(x)", compile("sin(y)")) is None

    def test_function_names_any_case(self):
        assert match_tree("sqrt(?;a)", compile("SQRT(4)")) is not None

    def test_number_pattern(self):
        m = match_tree("$n;k * ?;x", compile("3y"))
        assert captured(m, "k") == "3"
        assert match_tree("$n;k * ?;x", compile("y*y")) is None

    def test_type_pattern(self):
        m = match_tree("m_type(name);v ^ 2", compile("x^2"))
        assert captured(m, "v") == "x"
        assert match_tree("m_type(name);v ^ 2", compile("3^2")) is None

    @pytest.mark.parametrize("pattern, source, matches", [
        ("m_any(1, 2)", "2", True),
        ("m_any(1, 2)", "3", False),
        ("m_not(0)", "1", True),
        ("m_not(0)", "0", False),
        ("m_all(?, $n)", "4", True),
        ("m_all(?, $n)", "x", False),
        ("m_number()", "1.5", True),
    ])
    def test_combinators(self, pattern, source, matches):
        assert (match_tree(pattern, compile(source)) is not None) is matches

    def test_commute(self):
        m = match_tree("m_commute(2*?;a)", compile("x*2"))
        assert captured(m, "a") == "x"

    def test_rest_of_sum(self):
        m = match_tree("m_commute(x + ??;rest)", compile("y + x + z"))
        assert captured(m, "rest") == "y + z"

    def test_rest_of_product_is_identity_when_empty(self):
        m = match_tree("m_commute(x*y*??;rest)", compile("y*x"))
        assert captured(m, "rest") == "1"

    def test_names(self):
        assert compile_pattern("m_any(1, ?;x^0)").names() == {"x"}

    @pytest.mark.parametrize("pattern", ["?;2", "m_type()"])
    def test_bad_patterns(self, pattern):
        with pytest.raises(ParseError):
            compile_pattern(pattern)


class TestRules:
    def test_apply(self):
        rule = Rule("?;x*1", [], "x")
        assert tree_to_jme(rule.apply(compile("(a+b)*1"), builtin_scope)) == "a + b"
        assert rule.apply(compile("a*2"), builtin_scope) is None

    def test_conditions_and_eval(self):
        rule = Rule("?;n+?;m", ['n isa "number"', 'm isa "number"'], "eval(n+m)")
        assert tree_to_jme(rule.apply(compile("1+2"), builtin_scope)) == "3"
        assert rule.apply(compile("x+2"), builtin_scope) is None

    def test_failing_condition_means_no_match(self):
        rule = Rule("?;x", ["x > 0"], "0")
        assert rule.apply(compile("'a'"), builtin_scope) is None

    def test_conditions_ignore_variables(self):
        """Names in a condition are captured subtrees, never scope variables"""
        rule = Rule("?;x", ['x isa "number"'], "0")
        scope = Scope([builtin_scope, {"variables": {"y": 1}}])
        assert rule.apply(compile("y"), scope) is None

    def test_unbound_replacement_name(self):
        with pytest.raises(BindingError) as info:
            Rule("?;x*1", [], "y")
        assert info.value.kind == "jme.rules.unbound replacement name"

    @pytest.mark.parametrize("result", [None, "", "  "], ids=["missing", "empty", "blank"])
    def test_no_result(self, result):
        with pytest.raises(ParseError) as info:
            Rule("?;x*1", [], result)
        assert info.value.kind == "jme.rules.no result"
        assert "?;x*1" in info.value.message

    def test_literal_name_allowed_in_replacement(self):
        rule = Rule("sin(x)^2 + cos(x)^2", [], "1 + 0*x")
        assert tree_to_jme(rule.apply(compile("sin(x)^2 + cos(x)^2"), builtin_scope)) == "1 + 0x"


class TestCollectRuleset:
    def test_names_and_exclusion(self):
        every = collect_ruleset("all", BUILTIN_RULESETS)
        fewer = collect_ruleset("all, !collectNumbers", BUILTIN_RULESETS)
        assert len(fewer) == len(every) - len(BUILTIN_RULESETS["collectNumbers"])

    def test_case_insensitive(self):
        assert len(collect_ruleset("unitfactor", BUILTIN_RULESETS)) == 2

    def test_flags(self):
        r = collect_ruleset("basic, fractionnumbers", BUILTIN_RULESETS)
        assert r.flags["fractionnumbers"] is True
        assert r.flags["rowvector"] is False

    def test_list_spec(self):
        rule = Rule("?;x*1", [], "x")
        r = collect_ruleset([rule, "zeroTerm"], BUILTIN_RULESETS)
        assert r.rules[0] is rule
        assert len(r) == 1 + len(BUILTIN_RULESETS["zeroTerm"])

    def test_nested_names(self):
        sets = dict(BUILTIN_RULESETS, tidy="unitFactor, zeroTerm")
        assert len(collect_ruleset("tidy", sets)) == 6

    def test_unknown_set(self):
        with pytest.raises(BindingError) as info:
            collect_ruleset("nonsense", BUILTIN_RULESETS)
        assert info.value.kind == "jme.display.collectRuleset.set not defined"

    def test_no_sets(self):
        with pytest.raises(BindingError) as info:
            collect_ruleset("basic", None)
        assert info.value.kind == "jme.display.collectRuleset.no sets"

    def test_ruleset_passes_through(self):
        r = Ruleset([Rule("?;x*1", [], "x")])
        assert collect_ruleset(r, None) is r


class TestSimplify:
    @pytest.mark.parametrize("source, rules, expected", [
        ("1*x + 0", "unitFactor, zeroTerm", "x"),
        ("x^1", "unitPower", "x"),
        ("x/1", "unitDenominator", "x"),
        ("x^0", "zeroPower", "1"),
        ("x*0 + y", "zeroFactor, zeroTerm", "y"),
        ("0^x", "zeroBase", "0"),
        ("-(-x)", "basic", "x"),
        ("x + (-y)", "basic", "x - y"),
        ("x - (-y)", "basic", "x + y"),
        ("x + -2", "basic", "x - 2"),
        ("(a*b)*c", "basic", "a*(b*c)"),
        ("x + 1 + 2", "all", "x + 3"),
        ("2 + x", "collectNumbers", "x + 2"),
        ("2*3 + x", "collectNumbers", "x + 6"),
        ("x*2", "collectNumbers", "2x"),
        ("6/4", "simplifyFractions", "3/2"),
        ("2^3", "otherNumbers", "8"),
        ("sqrt(16)", "sqrtSquare", "4"),
        ("sqrt(x^2)", "sqrtSquare", "x"),
        ("sqrt(x)*sqrt(y)", "sqrtProduct", "sqrt(x*y)"),
        ("cos(0)", "trig", "1"),
        ("sinh(0)", "trig", "0"),
    ])
    def test_rulesets(self, source, rules, expected):
        assert simplified(source, rules) == expected

    @pytest.mark.parametrize("source", [
        "-(-x) + (-y)",
        "x - (-2)",
        "(a*b)*c + x + (-y)",
        "-(-(-x))",
        "x*(-y)/(-z)",
        "a + (b + (c - d))",
    ])
    def test_basic_is_idempotent(self, source):
        once = simplify(compile(source), "basic", builtin_scope)
        twice = simplify(once, "basic", builtin_scope)
        assert trees_equal(once, twice)

    def test_empty_tree(self):
        assert simplify(None, "all", builtin_scope) is None

    def test_no_rules_leaves_tree_alone(self):
        tree = compile("x + 0")
        assert trees_equal(simplify(tree, "", builtin_scope), tree)

    def test_flags_change_display(self):
        assert simplified("x + 0.5", "fractionnumbers") == "x + 1/2"

    def test_rules_that_never_settle(self):
        swap = Ruleset([Rule("?;x + ?;y", [], "y + x")])
        with pytest.raises(ResourceError) as info:
            simplify(compile("a + b"), swap, builtin_scope, max_steps=10)
        assert info.value.kind == "jme.display.simplify.too many steps"

    def test_to_latex(self):
        assert expr_to_latex("x^1/2", "all", builtin_scope) == "\\frac{ x }{ 2 }"
