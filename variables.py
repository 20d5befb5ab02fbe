from __future__ import annotations

import logging
from typing import Any, Mapping, NamedTuple, Optional, Sequence, Union

from errors import BindingError, DispatchError, JMEError, ResourceError
from parser import compile
from runtime import Scope, evaluate, findvars
from type_checker import FunctionSignature
from utils.ast_utils import Token, Tree

logger = logging.getLogger(__name__)

# A compiled variable definition: {"tree": Tree or None, "depends_on": [names]}
Definition = dict[str, Any]

# Errors from a dependency that are reported as they are instead of being
# wrapped in "error computing dependency".
PASS_THROUGH = frozenset({"jme.variables.circular reference", "jme.variables.variable not defined"})


class VariableSet(NamedTuple):
    variables: dict[str, Token]
    condition_satisfied: bool
    scope: Scope


def variable_definitions(definitions: Mapping[str, Optional[str]], scope: Optional[Scope] = None) -> dict[str, Definition]:
    """Compile variable definitions and work out what each depends on.

    Parameters
    ----------
    definitions : mapping of str to str
        JME source of each variable.
    scope : Scope or None
        Used to compile the definitions.

    Returns
    -------
    dict[str, dict]
        For each lower-cased name, ``{"tree": ..., "depends_on": [...]}``.
        An empty definition has ``tree`` ``None``; it is only an error if the
        variable is needed.

    Raises
    ------
    BindingError
        ``jme.variables.empty name`` for a blank variable name.

    Examples
    --------
    >>> defs = variable_definitions({"a": "b + 1", "b": "random(1..5)"})
    >>> defs["a"]["depends_on"], defs["b"]["depends_on"]
    (['b'], [])
    """
    out: dict[str, Definition] = {}
    for name, source in definitions.items():
        if not name or not name.strip():
            raise BindingError("jme.variables.empty name")
        tree = compile(source, scope) if source and source.strip() else None
        out[name.strip().lower()] = {"tree": tree, "depends_on": findvars(tree, scope=scope)}
    return out


def compute_variable(name: str, todo: Mapping[str, Definition], scope: Scope, path: Sequence[str] = ()) -> Token:
    """Evaluate one variable, computing its dependencies first.

    Values are stored in *scope* as they are computed, so a variable several
    others depend on is only evaluated once.

    Parameters
    ----------
    name : str
        The variable to compute.
    todo : mapping
        Compiled definitions, as made by :func:`variable_definitions`.
    scope : Scope
        Receives the computed values.
    path : sequence of str
        The variables waiting on this one, most recent first.

    Raises
    ------
    BindingError
        ``jme.variables.circular reference`` if *name* is already on
        *path*, ``jme.variables.variable not defined`` if it has no
        definition, ``jme.variables.empty definition`` if the definition is
        empty.
    JMEError
        ``jme.variables.error computing dependency`` or
        ``jme.variables.error evaluating variable`` wrapping the error that
        stopped evaluation, of the same class.
    """
    name = name.lower()
    value = scope.get_variable(name)
    if value is not None:
        return value
    if name in path:
        cycle = [name] + list(path[:list(path).index(name) + 1])
        raise BindingError("jme.variables.circular reference", name, " <- ".join(cycle))
    definition = todo.get(name)
    if definition is None:
        raise BindingError("jme.variables.variable not defined", name)

    for dependency in definition["depends_on"]:
        if scope.get_variable(dependency) is not None:
            continue
        try:
            compute_variable(dependency, todo, scope, [name] + list(path))
        except JMEError as e:
            if e.kind in PASS_THROUGH:
                raise
            raise type(e)("jme.variables.error computing dependency", dependency) from e

    if definition["tree"] is None:
        raise BindingError("jme.variables.empty definition", name)
    try:
        value = evaluate(definition["tree"], scope)
    except JMEError as e:
        raise type(e)("jme.variables.error evaluating variable", name, e.message) from e
    scope.set_variable(name, value)
    return value


def make_variables(
    definitions: Mapping[str, Union[str, Definition, None]],
    scope: Scope,
    condition: Union[str, Tree, None] = None,
) -> VariableSet:
    """Evaluate a set of variable definitions.

    Parameters
    ----------
    definitions : mapping
        JME source for each variable, or definitions compiled by
        :func:`variable_definitions`.
    scope : Scope
        Outer scope.  It is not changed; a child scope holds the values.
    condition : str, Tree or None
        An expression the generated values should satisfy.

    Returns
    -------
    VariableSet
        ``variables`` maps each defined name to its value;
        ``condition_satisfied`` says whether *condition* came out true;
        ``scope`` holds the variables.

    Examples
    --------
    >>> from library import builtin_scope
    >>> make_variables({"a": "b + 1", "b": "2"}, builtin_scope).variables["a"]
    TNum(3.0)
    """
    if any(not isinstance(d, dict) for d in definitions.values()):
        definitions = variable_definitions(definitions, scope)
    else:
        definitions = {name.lower(): d for name, d in definitions.items()}
    child = Scope([scope])
    for name in definitions:
        compute_variable(name, definitions, child)
    variables = {name: child.get_variable(name) for name in definitions}

    satisfied = True
    if condition is not None:
        tree = compile(condition, child) if isinstance(condition, str) else condition
        if tree is not None:
            result = evaluate(tree, child)
            satisfied = result.type == "boolean" and result.value
    return VariableSet(variables, satisfied, child)


def generate_variables(
    definitions: Mapping[str, Union[str, Definition, None]],
    scope: Scope,
    condition: Union[str, Tree, None] = None,
    max_runs: int = 100,
) -> dict[str, Token]:
    """Evaluate variable definitions again and again until *condition* holds.

    Raises
    ------
    ResourceError
        ``jme.variables.too many runs`` after *max_runs* failed attempts.
    """
    if any(not isinstance(d, dict) for d in definitions.values()):
        definitions = variable_definitions(definitions, scope)
    if isinstance(condition, str):
        condition = compile(condition, scope)
    for run in range(max_runs):
        result = make_variables(definitions, scope, condition)
        if result.condition_satisfied:
            logger.info("generated %d variables in %d run(s)", len(result.variables), run + 1)
            return result.variables
    raise ResourceError("jme.variables.too many runs", max_runs)


# ----------------------
# Custom functions
# ----------------------

class CustomFunction(FunctionSignature):
    """A function defined by a JME expression in its parameters.

    The body is evaluated in the scope of the call, with the parameters
    bound on top.
    """

    def __init__(self, name: str, parameters: Sequence[tuple[str, str]], outtype: str, tree: Tree) -> None:
        super().__init__(name, [t for _, t in parameters], None, None)
        self.parameters = [p for p, _ in parameters]
        self.outtype = outtype
        self.tree = tree

    def evaluate(self, args: Sequence[Token], scope: Scope) -> Token:
        child = Scope([scope, {"variables": dict(zip(self.parameters, args))}])
        result = evaluate(self.tree, child)
        if self.outtype not in ("?", "anything") and result.type != self.outtype:
            raise DispatchError("jme.typecheck.no right type definition", self.name, result.type)
        return result


def make_function(
    name: str,
    parameters: Sequence[tuple[str, str]],
    outtype: str,
    definition: str,
    scope: Optional[Scope] = None,
    language: str = "jme",
) -> CustomFunction:
    """Make a custom function from its JME definition.

    Parameters
    ----------
    name : str
        Function name.
    parameters : sequence of (name, type) pairs
        Type ``"?"`` accepts anything.
    outtype : str
        Type the result must have (``"?"`` for any).
    definition : str
        JME source of the body.
    scope : Scope or None
        Used to compile the body.
    language : str
        Only ``"jme"`` is supported.

    Raises
    ------
    JMEError
        ``jme.variables.unsupported function language`` for any other
        language; ``jme.variables.error making function`` if the body
        doesn't compile.

    Examples
    --------
    >>> from library import builtin_scope
    >>> f = make_function("double", [("x", "number")], "number", "2x")
    >>> Scope([builtin_scope, {"functions": {"double": [f]}}]).evaluate("double(4)")
    TNum(8.0)
    """
    if language.lower() != "jme":
        raise JMEError("jme.variables.unsupported function language", name, language)
    try:
        tree = compile(definition, scope)
    except JMEError as e:
        raise type(e)("jme.variables.error making function", name, e.message) from e
    if tree is None:
        raise BindingError("jme.variables.empty definition", name)
    return CustomFunction(name, parameters, outtype, tree)


def make_functions(definitions: Mapping[str, Mapping[str, Any]], scope: Optional[Scope] = None) -> dict[str, list[FunctionSignature]]:
    """Make custom functions from a mapping of name to
    ``{"parameters": [...], "type": ..., "definition": ..., "language": ...}``.

    The result can be used as the ``functions`` of a scope parent.
    """
    functions: dict[str, list[FunctionSignature]] = {}
    for name, spec in definitions.items():
        fn = make_function(
            name,
            [tuple(p) for p in spec.get("parameters", [])],
            spec.get("type", "?"),
            spec["definition"],
            scope,
            spec.get("language", "jme"),
        )
        functions.setdefault(name.lower(), []).append(fn)
    return functions
