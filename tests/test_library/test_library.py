import pytest

from display import token_to_jme
from errors import DispatchError, NumericError
from library import SCALAR_FUNCTIONS, build_builtin_scope, builtin_scope
from parser import compile
from runtime import evaluate


r_tol = 1e-09


def value_of(source: str):
    """Helper function that evaluates *source* in the builtin scope."""
    return evaluate(compile(source, builtin_scope), builtin_scope)


def jme_of(source: str) -> str:
    """Helper function that evaluates *source* and writes the value as JME."""
    return token_to_jme(value_of(source))


class TestArithmeticAndLogic:
    @pytest.mark.parametrize("source, expected", [
        ("[1, 2] + [3]", "[1, 2, 3]"),
        ("[1, 2] + 3", "[1, 2, 3]"),
        ("'a' + 1", '"a1"'),
        ("1 + 'a'", '"1a"'),
        ("vector(1, 2) * 2", "vector(2, 4)"),
        ("vector(2, 4) / 2", "vector(1, 2)"),
        ("matrix([1, 2], [3, 4]) * vector(1, 1)", "vector(3, 7)"),
        ("matrix([1, 1], [0, 1])^3", "matrix([1, 3], [0, 1])"),
        ("-vector(1, -2)", "vector(-1, 2)"),
        ("set(1, 2, 3) - set(2)", "set(1, 3)"),
        ("set(1, 2) and set(2, 3)", "set(2)"),
        ("set(1, 2) or set(2, 3)", "set(1, 2, 3)"),
    ])
    def test_operators(self, source, expected):
        assert jme_of(source) == expected

    @pytest.mark.parametrize("source, expected", [
        ("1 = 1.0", True),
        ("vector(1, 2) = vector(1, 2, 0)", True),
        ("[1, 2] = [1, 2]", True),
        ("'a' <> 'b'", True),
        ("1 = '1'", False),
        ("2 <= 2", True),
        ("3 > 4", False),
        ("2 | 6", True),
        ("4 divides 6", False),
        ("true xor true", False),
        ("false implies false", True),
        ("not true or true", True),
        ("3 in [1, 2, 3]", True),
        ("2.5 in 1..5#0", True),
        ("2.5 in 1..5", False),
        ("set(1) in [set(1)]", True),
    ])
    def test_comparisons(self, source, expected):
        assert value_of(source).value is expected

    def test_matrix_power_needs_natural_exponent(self):
        with pytest.raises(DispatchError):
            value_of("matrix([1, 1], [0, 1])^(-1)")


class TestCollections:
    @pytest.mark.parametrize("source, expected", [
        ("[1, 2, 3][1]", "2"),
        ("[1, 2, 3][-1]", "3"),
        ("[1, 2, 3, 4][1..3]", "[2, 3]"),
        ("'hello'[1]", '"e"'),
        ("vector(4, 5, 6)[2]", "6"),
        ("matrix([1, 2], [3, 4])[1]", "vector(3, 4)"),
        ("(0..10#2)[2]", "4"),
        ("sort([3, 1, 2])", "[1, 2, 3]"),
        ("sort(['b', 'a'])", '["a", "b"]'),
        ("distinct([1, 1, 2, 1])", "[1, 2]"),
        ("[1, 2, 3] except 2", "[1, 3]"),
        ("[1, 2, 3] except [1, 3]", "[2]"),
        ("1..5 except 3", "[1, 2, 4, 5]"),
        ("list(1..3)", "[1, 2, 3]"),
        ("list(vector(1, 2))", "[1, 2]"),
        ("list(set(1, 2))", "[1, 2]"),
        ("set([1, 2, 2])", "set(1, 2)"),
        ("union(set(1), set(2))", "set(1, 2)"),
        ("intersection(set(1, 2), set(2, 3))", "set(2)"),
        ("abs([1, 2, 3])", "3"),
        ("len('abcd')", "4"),
        ("abs(set(1, 2))", "2"),
        ("abs(1..10)", "10"),
        ("sum([1, 2, 3])", "6"),
        ("sum(vector(1, 2, 3))", "6"),
        ("prod([1, 2, 3, 4])", "24"),
        ("sort(deal(4))", "[0, 1, 2, 3]"),
        ("sort(shuffle([3, 1, 2]))", "[1, 2, 3]"),
        ("max([3, 7, 2])", "7"),
        ("min([3, 7, 2])", "2"),
        ("max(1, 5)", "5"),
    ])
    def test_collection_functions(self, source, expected):
        assert jme_of(source) == expected

    def test_invalid_index(self):
        with pytest.raises(NumericError) as info:
            value_of("[1, 2, 3][5]")
        assert info.value.kind == "jme.func.listval.invalid index"

    def test_not_a_list(self):
        with pytest.raises(NumericError) as info:
            value_of("true[0]")
        assert info.value.kind == "jme.func.listval.not a list"

    def test_extremum_of_empty_list(self):
        with pytest.raises(NumericError) as info:
            value_of("max([])")
        assert info.value.kind == "jme.func.empty list"

    def test_sort_mixed_types(self):
        with pytest.raises(DispatchError):
            value_of("sort([1, 'a'])")

    def test_random_choices(self):
        for _ in range(20):
            assert value_of("random(1..3) in [1, 2, 3]").value is True
            assert value_of("random([4, 5]) in [4, 5]").value is True
            assert value_of("random(6, 7) in [6, 7]").value is True

    def test_random_from_continuous_range(self):
        x = value_of("random(0..1#0)").value
        assert 0 <= x <= 1

    def test_random_from_empty_list(self):
        with pytest.raises(NumericError) as info:
            value_of("random([])")
        assert info.value.kind == "jme.func.random.empty"


class TestVectorsAndMatrices:
    @pytest.mark.parametrize("source, expected", [
        ("vector([1, 2])", "vector(1, 2)"),
        ("rowvector(1, 2)", "matrix([1, 2])"),
        ("matrix([1], [2, 3])", "matrix([1, 0], [2, 3])"),
        ("matrix([[1, 2], [3, 4]])", "matrix([1, 2], [3, 4])"),
        ("matrix(vector(1, 2), vector(3, 4))", "matrix([1, 2], [3, 4])"),
        ("dot(vector(1, 2, 3), vector(4, 5, 6))", "32"),
        ("cross(vector(1, 0, 0), vector(0, 1, 0))", "vector(0, 0, 1)"),
        ("det(matrix([1, 2], [3, 4]))", "-2"),
        ("det(matrix([2, 0, 0], [0, 3, 0], [0, 0, 4]))", "24"),
        ("transpose(matrix([1, 2], [3, 4]))", "matrix([1, 3], [2, 4])"),
        ("transpose(vector(1, 2))", "matrix([1, 2])"),
        ("id(2)", "matrix([1, 0], [0, 1])"),
        ("abs(vector(3, 4))", "5"),
        ("matrix([1, 2], [3, 4]) + matrix([1, 1], [1, 1])", "matrix([2, 3], [4, 5])"),
    ])
    def test_vector_functions(self, source, expected):
        assert jme_of(source) == expected

    def test_ragged_matrix(self):
        with pytest.raises(NumericError) as info:
            value_of("matrix([1, 'a'])")
        assert info.value.kind == "jme.matrix.ragged"

    def test_cross_needs_3d(self):
        with pytest.raises(NumericError) as info:
            value_of("cross(vector(1, 2), vector(3, 4))")
        assert info.value.kind == "jme.vectormath.cross.not 3d"

    def test_complex_scale(self):
        with pytest.raises(NumericError) as info:
            value_of("i * vector(1, 2)")
        assert info.value.kind == "jme.math.complex not allowed"


class TestNumberFunctions:
    @pytest.mark.parametrize("source, expected", [
        ("gcd(12, 18)", "6"),
        ("gcf(12, 18)", "6"),
        ("lcm(4, 6)", "12"),
        ("lcm(2, 3, 4)", "12"),
        ("lcm([2, 3, 5])", "30"),
        ("comb(5, 2)", "10"),
        ("perm(5, 2)", "20"),
        ("5!", "120"),
        ("fact(0)", "1"),
        ("mod(-1, 3)", "2"),
        ("mod(7, 3)", "1"),
        ("round(2.5)", "3"),
        ("round(-2.5)", "-2"),
        ("floor(-1.5)", "-2"),
        ("ceil(1.2)", "2"),
        ("trunc(-1.7)", "-1"),
        ("sign(-3)", "-1"),
        ("abs(-3)", "3"),
        ("abs(3 + 4i)", "5"),
        ("re(3 + 4i)", "3"),
        ("im(3 + 4i)", "4"),
        ("conj(3 + 4i)", "3 - 4*i"),
        ("log(100)", "2"),
        ("ln(e)", "1"),
        ("log(8, 2)", "3"),
        ("exp(0)", "1"),
        ("root(27, 3)", "3"),
        ("sqrt(16)", "4"),
        ("sin(0)", "0"),
        ("cos(0)", "1"),
        ("degrees(pi)", "180"),
        ("factorise(12)", "[2, 1]"),
        ("award(3, true)", "3"),
        ("award(3, false)", "0"),
        ("isint(4)", "true"),
        ("isint(4.5)", "false"),
        ("isnan(nan)", "true"),
        ("gcd_without_pi_or_i(4pi, 6pi)", "2"),
    ])
    def test_number_functions(self, source, expected):
        assert jme_of(source) == expected

    @pytest.mark.parametrize("source, expected", [
        ("precround(3.14159, 2)", 3.14),
        ("precround(1.005, 2)", 1.01),
        ("siground(123456, 2)", 120000),
        ("siground(0.0012345, 3)", 0.00123),
    ])
    def test_rounding(self, source, expected):
        assert abs(value_of(source).value - expected) < r_tol

    @pytest.mark.parametrize("source", [
        "precround(1.14, 2) = 1.14",
        "siground(1.14, 3) = 1.14",
        "precround(-0.29, 2) = -0.29",
    ])
    def test_rounding_is_exact(self, source):
        assert value_of(source).value is True

    @pytest.mark.parametrize("source, expected", [
        ("dpformat(1.5, 3)", "1.500"),
        ("dpformat(2, 0)", "2"),
        ("dpformat(1.14, 2)", "1.14"),
        ("sigformat(1234, 2)", "1200"),
        ("sigformat(0.5, 3)", "0.500"),
    ])
    def test_formatting(self, source, expected):
        assert value_of(source).value == expected

    @pytest.mark.parametrize("source, kind", [
        ("comb(2, 5)", "jme.math.combinations.n less than k"),
        ("perm(-1, 0)", "jme.math.permutations.n less than zero"),
        ("gcd(i, 2)", "jme.math.gcf.complex"),
        ("mod(i, 2)", "jme.math.order complex numbers"),
        ("max(i, 1)", "jme.math.order complex numbers"),
    ])
    def test_numeric_errors(self, source, kind):
        with pytest.raises(NumericError) as info:
            value_of(source)
        assert info.value.kind == kind

    def test_every_scalar_function_registered(self):
        for name in SCALAR_FUNCTIONS:
            assert builtin_scope.get_functions(name), name


class TestStringFunctions:
    @pytest.mark.parametrize("source, expected", [
        ("upper('abc')", "ABC"),
        ("lower('ABC')", "abc"),
        ("capitalise('hello world')", "Hello world"),
        ("pluralise(1, 'cat', 'cats')", "cat"),
        ("pluralise(2, 'cat', 'cats')", "cats"),
        ("string(1/2)", "0.5"),
        ("string([1, 2])", "[1, 2]"),
        ("latex(1/2)", "0.5"),
    ])
    def test_string_functions(self, source, expected):
        assert value_of(source).value == expected

    def test_latex_is_marked(self):
        assert value_of("latex(1)").latex is True
        assert value_of("string(1)").latex is False


class TestBuiltinScope:
    def test_fresh_scope_is_independent(self):
        scope = build_builtin_scope()
        assert scope is not builtin_scope
        assert scope.frozen

    def test_rulesets_registered(self):
        for name in ("basic", "all", "unitFactor", "collectNumbers"):
            assert builtin_scope.get_ruleset(name) is not None
