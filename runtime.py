from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from display import token_to_jme
from errors import BindingError, DispatchError, ResourceError
from parser import compile
from type_checker import FunctionSignature
from utils import math_utils
from utils.ast_utils import TBool, TList, TNum, TString, Token, Tree, wrap_value
from utils.parser_utils import content_split_brackets
from utils.type_checker_utils import describe_args

logger = logging.getLogger(__name__)

# Constructs that evaluate their own arguments.
LAZY_OPS = frozenset({"if", "switch", "repeat", "map", "isa", "satisfy"})

# Unbound names are allowed inside these when substituting.
SUBSTITUTE_ALLOW_UNBOUND = frozenset({"isa"})

ScopeParent = Union["Scope", Mapping[str, Any]]


class Scope:
    """Variables, function signatures and rulesets visible to an evaluation.

    A scope is built from a list of parents.  Each parent's entries are
    copied in, later parents overriding earlier ones, except that the
    signatures of a function name accumulate (kept in registration order).
    A parent may be another ``Scope`` or a mapping with any of the keys
    ``"variables"``, ``"functions"`` and ``"rulesets"``.

    Variable and function names are case-insensitive.

    Parameters
    ----------
    parents : Scope, mapping, or list of them
        Scopes to copy entries from.

    Examples
    --------
    >>> from utils.ast_utils import TNum
    >>> outer = Scope(variables={"x": TNum(1)})
    >>> inner = Scope([outer, {"variables": {"Y": TNum(2)}}])
    >>> inner.get_variable("X"), inner.get_variable("y")
    (TNum(1.0), TNum(2.0))
    """

    def __init__(
        self,
        parents: Union[ScopeParent, Sequence[ScopeParent], None] = None,
        *,
        variables: Optional[Mapping[str, Any]] = None,
        functions: Optional[Mapping[str, Sequence[FunctionSignature]]] = None,
        rulesets: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.variables: dict[str, Token] = {}
        self.functions: dict[str, list[FunctionSignature]] = {}
        self.rulesets: dict[str, Any] = {}
        self.frozen = False

        if parents is None:
            parents = []
        elif isinstance(parents, (Scope, Mapping)):
            parents = [parents]
        for parent in parents:
            if isinstance(parent, Scope):
                self._merge(parent.variables, parent.functions, parent.rulesets)
            else:
                self._merge(parent.get("variables", {}), parent.get("functions", {}), parent.get("rulesets", {}))
        self._merge(variables or {}, functions or {}, rulesets or {})

    def _merge(self, variables, functions, rulesets) -> None:
        for name, value in variables.items():
            self.variables[name.lower()] = wrap_value(value)
        for name, fns in functions.items():
            name = name.lower()
            merged = self.functions.get(name, []) + [f for f in fns if f not in self.functions.get(name, [])]
            merged.sort(key=lambda f: f.id)
            self.functions[name] = merged
        for name, ruleset in rulesets.items():
            self.rulesets[name] = ruleset

    def _check_mutable(self) -> None:
        if self.frozen:
            raise TypeError("this scope is frozen and can't be changed")

    def freeze(self) -> "Scope":
        """Make the scope read-only.  Returns the scope."""
        self.functions = {name: tuple(fns) for name, fns in self.functions.items()}
        self.variables = MappingProxyType(self.variables)
        self.functions = MappingProxyType(self.functions)
        self.rulesets = MappingProxyType(self.rulesets)
        self.frozen = True
        return self

    # variables

    def get_variable(self, name: str) -> Optional[Token]:
        return self.variables.get(name.lower())

    def set_variable(self, name: str, value: Any) -> None:
        self._check_mutable()
        self.variables[name.lower()] = wrap_value(value)

    def delete_variable(self, name: str) -> None:
        self._check_mutable()
        self.variables.pop(name.lower(), None)

    # functions

    def get_functions(self, name: str) -> Sequence[FunctionSignature]:
        return self.functions.get(name.lower(), ())

    def add_function(self, fn: FunctionSignature) -> FunctionSignature:
        self._check_mutable()
        self.functions.setdefault(fn.name.lower(), []).append(fn)
        return fn

    # rulesets

    def get_ruleset(self, name: str) -> Any:
        return self.rulesets.get(name)

    def add_ruleset(self, name: str, ruleset: Any) -> None:
        self._check_mutable()
        self.rulesets[name] = ruleset

    def evaluate(self, expr: Union[str, Tree], variables: Optional[Mapping[str, Any]] = None) -> Optional[Token]:
        """Evaluate JME source or a tree in this scope, optionally with
        extra variables."""
        scope = Scope([self, {"variables": variables}]) if variables else self
        tree = compile(expr, scope) if isinstance(expr, str) else expr
        return evaluate(tree, scope)

    def __repr__(self) -> str:
        return f"<Scope {len(self.variables)} variables, {len(self.functions)} functions>"


def _scope_without(scope: Scope, names: Iterable[str]) -> Scope:
    child = Scope([scope])
    for name in names:
        child.delete_variable(name)
    return child


# ----------------------
# Evaluation
# ----------------------

def interpolate(text: str, scope: Scope) -> str:
    """Replace every ``{expr}`` in *text* with the value of ``expr``.

    Strings are inserted as they are; other values as JME source.  Escaped
    braces ``\\{`` and ``\\}`` become literal braces.

    Examples
    --------
    >>> from library import builtin_scope
    >>> interpolate("x is {x+1}", Scope([builtin_scope, {"variables": {"x": 1}}]))
    'x is 2'
    """
    bits = content_split_brackets(text)
    out = []
    for i, bit in enumerate(bits):
        if i % 2 == 0:
            out.append(bit)
            continue
        value = evaluate(compile(bit, scope), scope)
        if value is None:
            continue
        out.append(value.value if value.type == "string" else token_to_jme(value))
    return "".join(out)


def dispatch(tok: Token, args: Sequence[Token], scope: Scope) -> Token:
    """Apply the op or function *tok* to evaluated *args*.

    Picks the first signature registered for the name whose input pattern
    fits the argument types.

    Raises
    ------
    DispatchError
        If the name has no signatures, or none of them fit.
    """
    name = tok.name.lower()
    fns = scope.get_functions(name)
    if not fns:
        if tok.type == "function":
            rest = name[1:]
            if rest and scope.get_functions(rest):
                raise DispatchError("jme.typecheck.function maybe implicit multiplication", tok.name, tok.name[0], rest)
            raise DispatchError("jme.typecheck.function not defined", tok.name)
        raise DispatchError("jme.typecheck.op not defined", tok.name)
    for fn in fns:
        if fn.typecheck(args):
            return fn.evaluate(args, scope)
    for arg in args:
        if arg.type == "name":
            raise DispatchError("jme.typecheck.no right type unbound name", arg.name)
    raise DispatchError("jme.typecheck.no right type definition", tok.name, describe_args(args))


def evaluate(tree: Optional[Tree], scope: Scope, allow_unbound: bool = False) -> Optional[Token]:
    """Evaluate an expression tree.

    Parameters
    ----------
    tree : Tree or None
        A compiled expression (``None`` evaluates to ``None``).
    scope : Scope
        Variables and functions to use.
    allow_unbound : bool
        If ``True``, a name with no value evaluates to itself instead of
        raising.

    Returns
    -------
    Token or None
        The value.

    Raises
    ------
    BindingError
        ``jme.evaluate.undefined variable`` for a name with no value.
    DispatchError
        When no function signature fits the arguments.

    Examples
    --------
    >>> from library import builtin_scope
    >>> evaluate(compile("2+3*4"), builtin_scope)
    TNum(14.0)
    >>> evaluate(compile("if(true, 1, 1/0)"), builtin_scope)
    TNum(1.0)
    """
    if tree is None:
        return None
    tok = tree.token
    kind = tok.type

    if kind in ("number", "boolean", "range", "vector", "matrix", "set"):
        return tok

    if kind == "list":
        if tree.args is None:
            return tok
        return TList([evaluate(a, scope, allow_unbound) for a in tree.args])

    if kind == "string":
        value = tok.value
        if not tok.safe and "{" in value:
            value = interpolate(value, scope)
        value = value.replace("\\{", "{").replace("\\}", "}")
        return TString(value, safe=tok.safe, latex=tok.latex)

    if kind == "name":
        value = scope.get_variable(tok.name)
        if value is not None:
            return value
        if allow_unbound:
            return tok
        raise BindingError("jme.evaluate.undefined variable", tok.name)

    if kind in ("op", "function"):
        name = tok.name.lower()
        if name in LAZY_OPS:
            fns = scope.get_functions(name)
            if not fns:
                raise DispatchError("jme.typecheck.function not defined", tok.name)
            return fns[0].evaluate(tree.args, scope)
        args = [evaluate(a, scope, allow_unbound) for a in tree.args]
        return dispatch(tok, args, scope)

    raise DispatchError("jme.typecheck.no right type definition", kind)


def substitute_tree(tree: Tree, scope: Scope, allow_unbound: bool = False) -> Tree:
    """Replace the names bound in *scope* with their values.

    Names bound by ``map`` and ``satisfy`` are left alone inside the
    constructs that bind them.

    Examples
    --------
    >>> from utils.ast_utils import TNum
    >>> s = Scope(variables={"x": TNum(2)})
    >>> from display import tree_to_jme
    >>> tree_to_jme(substitute_tree(compile("x + y"), s, allow_unbound=True))
    '2 + y'
    """
    tok = tree.token
    if tree.args is None:
        if tok.type != "name":
            return tree
        value = scope.get_variable(tok.name)
        if value is None:
            if allow_unbound:
                return tree
            raise BindingError("jme.substituteTree.undefined variable", tok.name)
        return Tree(value)

    name = tok.name.lower() if tok.type in ("op", "function") else None
    if name in SUBSTITUTE_ALLOW_UNBOUND:
        allow_unbound = True
    if name in BINDERS and len(tree.args) >= 2:
        bound, body_indexes = BINDERS[name](tree)
        inner = _scope_without(scope, bound)
        args = [substitute_tree(a, inner if i in body_indexes else scope, allow_unbound or i in body_indexes)
                for i, a in enumerate(tree.args)]
        return Tree(tok, args)
    return Tree(tok, [substitute_tree(a, scope, allow_unbound) for a in tree.args])


def _bound_names(tree: Tree) -> list[str]:
    if tree.token.type == "name":
        return [tree.token.key]
    if tree.token.type == "list" and tree.args is not None:
        return [a.token.key for a in tree.args if a.token.type == "name"]
    return []


# For each binding construct: the names it binds and the indexes of the
# arguments they are bound in.
BINDERS = {
    "map": lambda tree: (_bound_names(tree.args[1]), {0, 1}),
    "satisfy": lambda tree: (_bound_names(tree.args[0]), {0, 1, 2}),
}


def findvars(tree: Optional[Tree], boundvars: Optional[Iterable[str]] = None, scope: Optional[Scope] = None) -> list[str]:
    """Names used in *tree* that are not bound by it.

    Names in ``boundvars`` are skipped, as are the names bound by ``map``
    and ``satisfy``.  Names used inside ``{...}`` in strings count.

    Parameters
    ----------
    tree : Tree or None
        A compiled expression.
    boundvars : iterable of str or None
        Names already bound (lower case).
    scope : Scope or None
        Passed to the parser when compiling string interpolations.

    Returns
    -------
    list[str]
        Free variable names in lower case, in order of first use.

    Examples
    --------
    >>> findvars(compile("x + map(x*y, x, [1,2])"))
    ['x', 'y']
    >>> findvars(compile('"value {a}"'))
    ['a']
    """
    if tree is None:
        return []
    bound = set(boundvars or ())
    out: list[str] = []

    def add(names: Iterable[str]) -> None:
        for n in names:
            if n not in out:
                out.append(n)

    tok = tree.token
    if tree.args is None:
        if tok.type == "name":
            if tok.key not in bound:
                out.append(tok.key)
        elif tok.type == "string" and not tok.safe:
            bits = content_split_brackets(tok.value)
            for bit in bits[1::2]:
                add(findvars(compile(bit, scope), bound, scope))
        return out

    name = tok.name.lower() if tok.type in ("op", "function") else None
    if name in BINDERS and len(tree.args) >= 2:
        names, body_indexes = BINDERS[name](tree)
        for i, arg in enumerate(tree.args):
            add(findvars(arg, bound | set(names) if i in body_indexes else bound, scope))
        return out

    for arg in tree.args:
        add(findvars(arg, bound, scope))
    return out


# ----------------------
# Lazy constructs
# ----------------------

def _wrong_arity(name: str, args: Sequence[Tree]) -> DispatchError:
    return DispatchError("jme.typecheck.no right type definition", name, len(args))


def eval_if(args: Sequence[Tree], scope: Scope) -> Token:
    if len(args) != 3:
        raise _wrong_arity("if", args)
    condition = evaluate(args[0], scope)
    if condition.type != "boolean":
        raise DispatchError("jme.func.if.condition not a boolean", condition.type)
    return evaluate(args[1] if condition.value else args[2], scope)


def eval_switch(args: Sequence[Tree], scope: Scope) -> Token:
    for i in range(0, len(args) - 1, 2):
        condition = evaluate(args[i], scope)
        if condition.type != "boolean":
            raise DispatchError("jme.func.switch.condition not a boolean", condition.type)
        if condition.value:
            return evaluate(args[i + 1], scope)
    if len(args) % 2 == 1:
        return evaluate(args[-1], scope)
    raise DispatchError("jme.func.switch.no default case")


def eval_repeat(args: Sequence[Tree], scope: Scope) -> Token:
    if len(args) != 2:
        raise _wrong_arity("repeat", args)
    times = evaluate(args[1], scope)
    if times.type != "number":
        raise DispatchError("jme.typecheck.no right type definition", "repeat", times.type)
    return TList([evaluate(args[0], scope) for _ in range(int(math_utils.re(times.value)))])


def _elements(value: Token) -> list[Token]:
    if value.type == "range":
        return [TNum(v) for v in value.value]
    if value.type in ("list", "set"):
        return list(value.value)
    if value.type == "vector":
        return [TNum(float(v)) for v in value.value]
    raise DispatchError("jme.typecheck.map not on enumerable", value.type)


def eval_map(args: Sequence[Tree], scope: Scope) -> Token:
    if len(args) != 3:
        raise _wrong_arity("map", args)
    expr, names_tree, collection = args
    elements = _elements(evaluate(collection, scope))
    if names_tree.token.type == "name":
        names = None
    elif names_tree.token.type == "list" and names_tree.args is not None and all(
            a.token.type == "name" for a in names_tree.args):
        names = [a.token.name for a in names_tree.args]
    else:
        raise DispatchError("jme.func.map.names")

    results = []
    for element in elements:
        child = Scope([scope])
        if names is None:
            child.set_variable(names_tree.token.name, element)
        else:
            parts = element.value if element.type == "list" else [element]
            for name, part in zip(names, parts):
                child.set_variable(name, part)
        results.append(evaluate(expr, child))
    return TList(results)


def eval_isa(args: Sequence[Tree], scope: Scope) -> Token:
    if len(args) != 2:
        raise _wrong_arity("isa", args)
    kind = evaluate(args[1], scope)
    if kind.type != "string":
        raise DispatchError("jme.func.isa.kind")
    kind = kind.value
    subject = args[0]
    if subject.token.type == "name" and scope.get_variable(subject.token.name) is None:
        return TBool(kind == "name")
    free = [n for n in findvars(subject, scope=scope) if scope.get_variable(n) is None]
    if free:
        return TBool(subject.token.type == kind)
    value = evaluate(subject, scope)
    if kind == "complex":
        return TBool(value.type == "number" and math_utils.im(value.value) != 0)
    return TBool(value.type == kind)


def eval_satisfy(args: Sequence[Tree], scope: Scope) -> Token:
    if len(args) not in (3, 4):
        raise _wrong_arity("satisfy", args)
    names_tree, definitions_tree, conditions_tree = args[:3]
    for t in (names_tree, definitions_tree, conditions_tree):
        if t.token.type != "list" or t.args is None:
            raise DispatchError("jme.typecheck.no right type definition", "satisfy", t.token.type)
    names = _bound_names(names_tree)
    if len(names) != len(definitions_tree.args):
        raise DispatchError("jme.func.satisfy.wrong number of definitions")
    max_runs = 100
    if len(args) == 4:
        max_runs = int(math_utils.re(evaluate(args[3], scope).value))

    for run in range(max_runs):
        child = Scope([scope])
        for name, definition in zip(names, definitions_tree.args):
            child.set_variable(name, evaluate(definition, child))
        satisfied = True
        for condition in conditions_tree.args:
            result = evaluate(condition, child)
            if result.type != "boolean":
                raise DispatchError("jme.func.satisfy.condition not a boolean")
            if not result.value:
                satisfied = False
                break
        if satisfied:
            logger.debug("satisfy(%s) succeeded after %d runs", ", ".join(names), run + 1)
            return TList([child.get_variable(n) for n in names])
    raise ResourceError("jme.func.satisfy.took too many runs")


LAZY_CONSTRUCTS = {
    "if": eval_if,
    "switch": eval_switch,
    "repeat": eval_repeat,
    "map": eval_map,
    "isa": eval_isa,
    "satisfy": eval_satisfy,
}
