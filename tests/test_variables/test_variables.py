import pytest

from errors import BindingError, DispatchError, JMEError, NumericError, ResourceError
from library import builtin_scope
from runtime import Scope
from utils.ast_utils import TNum, TString
from variables import (VariableSet, compute_variable, generate_variables, make_function, make_functions,
                       make_variables, variable_definitions)


def values(result: VariableSet) -> dict:
    """Helper function that unwraps the numbers and strings of a variable set."""
    return {name: tok.value for name, tok in result.variables.items()}


class TestDefinitions:
    def test_dependencies(self):
        defs = variable_definitions({"a": "b + 1", "b": "random(1..5)", "c": "map(x*a, x, [1])"})
        assert defs["a"]["depends_on"] == ["b"]
        assert defs["b"]["depends_on"] == []
        assert defs["c"]["depends_on"] == ["a"]

    def test_outer_variables_satisfy_dependencies(self):
        scope = Scope([builtin_scope, {"variables": {"k": 2}}])
        defs = variable_definitions({"a": "k*b", "b": "3"}, scope)
        assert defs["a"]["depends_on"] == ["k", "b"]
        assert values(make_variables(defs, scope))["a"] == 6

    def test_empty_definition_compiles_to_nothing(self):
        assert variable_definitions({"a": ""})["a"]["tree"] is None

    def test_empty_name(self):
        with pytest.raises(BindingError) as info:
            variable_definitions({" ": "1"})
        assert info.value.kind == "jme.variables.empty name"


class TestMakeVariables:
    def test_dependency_order(self):
        result = make_variables({"a": "b + 1", "b": "c*2", "c": "3"}, builtin_scope)
        assert values(result) == {"a": 7, "b": 6, "c": 3}

    def test_scope_holds_values(self):
        result = make_variables({"a": "2"}, builtin_scope)
        assert result.scope.evaluate("a^2") == TNum(4)
        assert builtin_scope.get_variable("a") is None

    def test_names_case_insensitive(self):
        result = make_variables({"A": "1", "b": "a + 1"}, builtin_scope)
        assert values(result) == {"a": 1, "b": 2}

    def test_string_interpolation_dependency(self):
        result = make_variables({"s": '"n = {n}"', "n": "4"}, builtin_scope)
        assert result.variables["s"] == TString("n = 4")

    def test_condition(self):
        assert make_variables({"a": "1"}, builtin_scope, "a > 0").condition_satisfied is True
        assert make_variables({"a": "1"}, builtin_scope, "a > 5").condition_satisfied is False

    def test_no_condition(self):
        assert make_variables({"a": "1"}, builtin_scope).condition_satisfied is True

    def test_precompiled_definitions(self):
        defs = variable_definitions({"a": "b + 1", "b": "2"})
        assert values(make_variables(defs, builtin_scope)) == {"a": 3, "b": 2}

    def test_shared_dependency_computed_once(self):
        result = make_variables({"r": "random(1..1000000)", "a": "r", "b": "r"}, builtin_scope)
        assert result.variables["a"] == result.variables["b"]


class TestErrors:
    def test_circular_reference(self):
        with pytest.raises(BindingError) as info:
            make_variables({"a": "b + 1", "b": "a + 1"}, builtin_scope)
        error = info.value
        assert error.kind == "jme.variables.circular reference"
        assert "a" in error.message and "b" in error.message
        assert error.message_args[1] == "a <- b <- a"

    def test_self_reference(self):
        with pytest.raises(BindingError) as info:
            make_variables({"a": "a + 1"}, builtin_scope)
        assert info.value.kind == "jme.variables.circular reference"

    def test_undefined_dependency(self):
        with pytest.raises(BindingError) as info:
            make_variables({"a": "zz + 1"}, builtin_scope)
        assert info.value.kind == "jme.variables.variable not defined"
        assert info.value.message_args == ("zz",)

    def test_empty_definition_when_used(self):
        with pytest.raises(BindingError) as info:
            make_variables({"a": "b", "b": ""}, builtin_scope)
        assert info.value.kind == "jme.variables.error computing dependency"
        assert info.value.__cause__.kind == "jme.variables.empty definition"

    def test_error_in_dependency_keeps_class(self):
        with pytest.raises(NumericError) as info:
            make_variables({"a": "b", "b": "[1][5]"}, builtin_scope)
        assert info.value.kind == "jme.variables.error computing dependency"
        assert info.value.message_args == ("b",)

    def test_error_evaluating(self):
        with pytest.raises(DispatchError) as info:
            make_variables({"a": "1 + true"}, builtin_scope)
        assert info.value.kind == "jme.variables.error evaluating variable"
        assert info.value.message_args[0] == "a"

    def test_compute_variable_directly(self):
        scope = Scope([builtin_scope])
        defs = variable_definitions({"a": "b*2", "b": "5"})
        assert compute_variable("a", defs, scope) == TNum(10)
        assert scope.get_variable("b") == TNum(5)


class TestGenerateVariables:
    def test_retries_until_condition_holds(self):
        result = generate_variables({"a": "random(1..10)", "b": "random(1..10)"}, builtin_scope, "a < b")
        assert result["a"].value < result["b"].value

    def test_gives_up(self):
        with pytest.raises(ResourceError) as info:
            generate_variables({"a": "1"}, builtin_scope, "a = 2", max_runs=3)
        assert info.value.kind == "jme.variables.too many runs"


class TestCustomFunctions:
    def test_make_function(self):
        f = make_function("double", [("x", "number")], "number", "2x")
        scope = Scope([builtin_scope, {"functions": {"double": [f]}}])
        assert scope.evaluate("double(4)") == TNum(8)

    def test_parameter_types_checked(self):
        f = make_function("double", [("x", "number")], "number", "2x")
        scope = Scope([builtin_scope, {"functions": {"double": [f]}}])
        with pytest.raises(DispatchError):
            scope.evaluate("double('a')")

    def test_output_type_checked(self):
        f = make_function("bad", [("x", "number")], "string", "x")
        scope = Scope([builtin_scope, {"functions": {"bad": [f]}}])
        with pytest.raises(DispatchError):
            scope.evaluate("bad(1)")

    def test_sees_variables_of_calling_scope(self):
        f = make_function("shift", [("x", "number")], "number", "x + k")
        scope = Scope([builtin_scope, {"variables": {"k": 10}, "functions": {"shift": [f]}}])
        assert scope.evaluate("shift(1)") == TNum(11)

    def test_make_functions(self):
        functions = make_functions({
            "sq": {"parameters": [["x", "number"]], "type": "number", "definition": "x^2"},
            "greet": {"parameters": [["name", "string"]], "type": "string",
                      "definition": '"hello " + name'},
        })
        scope = Scope([builtin_scope, {"functions": functions}])
        assert scope.evaluate("sq(3)") == TNum(9)
        assert scope.evaluate("greet('you')") == TString("hello you")

    def test_unsupported_language(self):
        with pytest.raises(JMEError) as info:
            make_function("f", [], "number", "return 1;", language="javascript")
        assert info.value.kind == "jme.variables.unsupported function language"

    def test_bad_definition(self):
        with pytest.raises(JMEError) as info:
            make_function("f", [("x", "number")], "number", "(x + 1")
        assert info.value.kind == "jme.variables.error making function"
