from __future__ import annotations

import logging
from functools import reduce
from typing import Any, Callable, Optional, Sequence

import numpy as np

from display import texify, token_to_jme
from errors import DispatchError, NumericError
from runtime import LAZY_CONSTRUCTS, Scope
from simplifier import BUILTIN_RULESETS
from type_checker import FunctionSignature, LazySignature
from utils import math_utils, set_utils, vector_utils
from utils.ast_utils import TBool, TList, TMatrix, TNum, TRange, TSet, TString, TVector, Token, Tree, tokens_equal
from utils.type_checker_utils import describe_args

logger = logging.getLogger(__name__)


# ----------------------
# Helpers
# ----------------------

def _real_scalar(k: math_utils.Number, where: str) -> float:
    if math_utils.is_complex(k) and k.imag != 0:
        raise NumericError("jme.math.complex not allowed", where)
    return math_utils.re(k)


def _numbers(items: Sequence[Token], name: str) -> list[math_utils.Number]:
    if any(t.type != "number" for t in items):
        raise DispatchError("jme.typecheck.no right type definition", name, describe_args(items))
    return [t.value for t in items]


def _as_text(tok: Token) -> str:
    return tok.value if tok.type == "string" else token_to_jme(tok)


def _index(i: math_utils.Number, size: int) -> int:
    index = int(math_utils.re(i))
    if index < 0:
        index += size
    if not 0 <= index < size:
        raise NumericError("jme.func.listval.invalid index", int(math_utils.re(i)), size)
    return index


def _slice(r: TRange, size: int) -> slice:
    start, end = int(r.start), int(r.end)
    if start < 0:
        start += size
    if end < 0:
        end += size
    return slice(start, end)


def _range_numbers(r: TRange) -> list[Token]:
    return [TNum(v) for v in r.value]


def _in_range(x: math_utils.Number, r: TRange) -> bool:
    if r.continuous:
        x = math_utils.re(x)
        return r.start <= x <= r.end
    return any(math_utils.eq(x, v) for v in r.value)


def _matrix_from_rows(*rows: Sequence[Token]) -> TMatrix:
    """``matrix([1,2],[3,4])`` or ``matrix([[1,2],[3,4]])``.  Short rows are
    padded with zeros."""
    if len(rows) == 1 and rows[0] and all(t.type == "list" for t in rows[0]):
        rows = tuple(t.value for t in rows[0])
    values = []
    for row in rows:
        if any(t.type != "number" for t in row):
            raise NumericError("jme.matrix.ragged")
        values.append([math_utils.re(t.value) for t in row])
    width = max((len(r) for r in values), default=0)
    return TMatrix([r + [0.0] * (width - len(r)) for r in values])


def _matrix_power(m: np.ndarray, n: math_utils.Number) -> np.ndarray:
    if not math_utils.is_int(n) or math_utils.re(n) < 0:
        raise DispatchError("jme.typecheck.no right type definition", "^", "matrix, number")
    if m.shape[0] != m.shape[1]:
        raise NumericError("jme.matrixmath.mul.different sizes")
    return np.linalg.matrix_power(m, int(math_utils.re(n)))


def _elementwise(fn: Callable[[float, float], float]) -> Callable[[np.ndarray, float], np.ndarray]:
    def apply(a: np.ndarray, d: float) -> np.ndarray:
        return np.array([fn(float(x), d) for x in a.reshape(-1)], dtype=float).reshape(a.shape)
    return apply


def _divide_array(a: np.ndarray, k: math_utils.Number) -> np.ndarray:
    k = _real_scalar(k, "/")
    with np.errstate(divide="ignore", invalid="ignore"):
        return a / k


def _sort(items: Sequence[Token]) -> list[Token]:
    if all(t.type == "number" for t in items):
        return sorted(items, key=lambda t: _real_scalar(t.value, "sort"))
    if all(t.type == "string" for t in items):
        return sorted(items, key=lambda t: t.value)
    raise DispatchError("jme.typecheck.no right type definition", "sort", describe_args(items))


def _listval(collection: Token, index: Token) -> Token:
    kind = collection.type
    if index.type == "range":
        if kind == "list":
            return TList(collection.value[_slice(index, len(collection.value))])
        if kind == "string":
            return TString(collection.value[_slice(index, len(collection.value))])
        if kind == "vector":
            return TVector(collection.value[_slice(index, len(collection.value))])
        raise NumericError("jme.func.listval.not a list")
    if kind == "list":
        return collection.value[_index(index.value, len(collection.value))]
    if kind == "string":
        return TString(collection.value[_index(index.value, len(collection.value))])
    if kind == "vector":
        return TNum(float(collection.value[_index(index.value, len(collection.value))]))
    if kind == "matrix":
        return TVector(collection.value[_index(index.value, collection.rows)])
    if kind == "range":
        return TNum(collection.value[_index(index.value, len(collection.value))])
    raise NumericError("jme.func.listval.not a list")


def _extremum(fn: Callable[[Any, Any], float], items: Sequence[Token], name: str) -> float:
    values = _numbers(items, name)
    if not values:
        raise NumericError("jme.func.empty list", name)
    return reduce(fn, values)


def _except(a: Sequence[Token], b: Sequence[Token]) -> list[Token]:
    return [x for x in a if not set_utils.contains(b, x)]


def _pluralise(n: math_utils.Number, singular: str, plural: str) -> str:
    return singular if math_utils.eq(n, 1.0) else plural


def _capitalise(s: str) -> str:
    return s[:1].upper() + s[1:]


# ----------------------
# Builtin scope
# ----------------------

# name -> scalar function registered for a single number argument
SCALAR_FUNCTIONS: dict[str, Callable[[math_utils.Number], math_utils.Number]] = {
    "arg": math_utils.arg,
    "re": math_utils.re,
    "im": math_utils.im,
    "conj": math_utils.conj,
    "sqrt": math_utils.sqrt,
    "ln": math_utils.log,
    "log": math_utils.log10,
    "exp": math_utils.exp,
    "fact": math_utils.factorial,
    "gamma": math_utils.gamma,
    "sin": math_utils.sin,
    "cos": math_utils.cos,
    "tan": math_utils.tan,
    "cosec": math_utils.cosec,
    "sec": math_utils.sec,
    "cot": math_utils.cot,
    "arcsin": math_utils.arcsin,
    "arccos": math_utils.arccos,
    "arctan": math_utils.arctan,
    "sinh": math_utils.sinh,
    "cosh": math_utils.cosh,
    "tanh": math_utils.tanh,
    "cosech": math_utils.cosech,
    "sech": math_utils.sech,
    "coth": math_utils.coth,
    "arcsinh": math_utils.arcsinh,
    "arccosh": math_utils.arccosh,
    "arctanh": math_utils.arctanh,
    "ceil": math_utils.ceil,
    "floor": math_utils.floor,
    "trunc": math_utils.trunc,
    "fract": math_utils.fract,
    "degrees": math_utils.degrees,
    "radians": math_utils.radians,
    "round": math_utils.round_,
    "sign": math_utils.sign,
}

COMPARISONS = {
    "<": math_utils.lt,
    ">": math_utils.gt,
    "<=": math_utils.leq,
    ">=": math_utils.geq,
}


def build_builtin_scope() -> Scope:
    """Build the scope holding every builtin function, operator and ruleset.

    Signatures are registered in order; when several fit the arguments of
    a call, the one registered first is used.  The returned scope is
    frozen.

    Returns
    -------
    Scope

    Examples
    --------
    >>> scope = build_builtin_scope()
    >>> scope.evaluate("vector(1,2) + vector(1,2,3)")
    TVector([2.0, 4.0, 3.0])
    >>> scope.add_ruleset("mine", None)
    Traceback (most recent call last):
        ...
    TypeError: this scope is frozen and can't be changed
    """
    scope = Scope()

    def add(name: str, intype: Sequence[str], outcons: Optional[Callable[[Any], Token]],
            fn: Callable[..., Any], **opts: Any) -> None:
        scope.add_function(FunctionSignature(name, intype, outcons, fn, **opts))

    # arithmetic
    add("+u", ["number"], TNum, lambda a: a)
    add("+u", ["vector"], TVector, lambda a: a)
    add("+u", ["matrix"], TMatrix, lambda a: a)
    add("-u", ["number"], TNum, math_utils.negate)
    add("-u", ["vector"], TVector, vector_utils.vector_negate)
    add("-u", ["matrix"], TMatrix, vector_utils.matrix_negate)

    add("+", ["number", "number"], TNum, math_utils.add)
    add("+", ["list", "list"], TList, lambda a, b: a + b)
    add("+", ["list", "?"], TList, lambda a, b: TList(a.value + [b]), tokens=True)
    add("+", ["string", "?"], TString, lambda a, b: TString(a.value + _as_text(b)), tokens=True)
    add("+", ["?", "string"], TString, lambda a, b: TString(_as_text(a) + b.value), tokens=True)
    add("+", ["vector", "vector"], TVector, vector_utils.vector_add)
    add("+", ["matrix", "matrix"], TMatrix, vector_utils.matrix_add)

    add("-", ["number", "number"], TNum, math_utils.sub)
    add("-", ["vector", "vector"], TVector, vector_utils.vector_sub)
    add("-", ["matrix", "matrix"], TMatrix, vector_utils.matrix_sub)
    add("-", ["set", "set"], TSet, set_utils.minus)

    add("*", ["number", "number"], TNum, math_utils.mul)
    add("*", ["number", "vector"], TVector, lambda k, v: vector_utils.vector_scale(_real_scalar(k, "*"), v))
    add("*", ["vector", "number"], TVector, lambda v, k: vector_utils.vector_scale(_real_scalar(k, "*"), v))
    add("*", ["number", "matrix"], TMatrix, lambda k, m: vector_utils.matrix_scale(_real_scalar(k, "*"), m))
    add("*", ["matrix", "number"], TMatrix, lambda m, k: vector_utils.matrix_scale(_real_scalar(k, "*"), m))
    add("*", ["matrix", "matrix"], TMatrix, vector_utils.matrix_mul)
    add("*", ["matrix", "vector"], TVector, vector_utils.matrix_vector_mul)
    add("*", ["vector", "matrix"], TVector, vector_utils.vector_matrix_mul)

    add("/", ["number", "number"], TNum, math_utils.div)
    add("/", ["vector", "number"], TVector, _divide_array)
    add("/", ["matrix", "number"], TMatrix, _divide_array)

    add("^", ["number", "number"], TNum, math_utils.pow)
    add("^", ["matrix", "number"], TMatrix, _matrix_power)

    # comparison and logic
    for name, fn in COMPARISONS.items():
        add(name, ["number", "number"], TBool, fn)
    add("=", ["?", "?"], TBool, lambda a, b: tokens_equal(a, b), tokens=True)
    add("<>", ["?", "?"], TBool, lambda a, b: not tokens_equal(a, b), tokens=True)

    add("not", ["boolean"], TBool, lambda a: not a)
    add("and", ["boolean", "boolean"], TBool, lambda a, b: a and b)
    add("or", ["boolean", "boolean"], TBool, lambda a, b: a or b)
    add("xor", ["boolean", "boolean"], TBool, lambda a, b: a != b)
    add("implies", ["boolean", "boolean"], TBool, lambda a, b: not a or b)
    add("and", ["set", "set"], TSet, set_utils.intersection)
    add("or", ["set", "set"], TSet, set_utils.union)
    add("|", ["number", "number"], TBool, math_utils.divides)

    # ranges and collections
    add("..", ["number", "number"], TRange, lambda a, b: TRange(math_utils.re(a), math_utils.re(b), 1))
    add("#", ["range", "number"], TRange, lambda r, s: TRange(r.start, r.end, math_utils.re(s.value)), tokens=True)
    add("in", ["number", "range"], TBool, lambda x, r: _in_range(x.value, r), tokens=True)
    add("in", ["?", "list"], TBool, lambda x, l: set_utils.contains(l.value, x), tokens=True)
    add("in", ["?", "set"], TBool, lambda x, s: set_utils.contains(s.value, x), tokens=True)
    add("except", ["list", "list"], TList, _except)
    add("except", ["list", "?"], TList, lambda l, x: TList(_except(l.value, [x])), tokens=True)
    add("except", ["range", "range"], TList,
        lambda a, b: TList(_except(_range_numbers(a), _range_numbers(b))), tokens=True)
    add("except", ["range", "list"], TList, lambda r, l: TList(_except(_range_numbers(r), l.value)), tokens=True)
    add("except", ["range", "number"], TList, lambda r, x: TList(_except(_range_numbers(r), [x])), tokens=True)
    add("distinct", ["list"], TList, set_utils.distinct)
    add("list", ["range"], TList, lambda r: TList(_range_numbers(r)), tokens=True)
    add("list", ["set"], TList, lambda s: s)
    add("list", ["vector"], None, lambda v: [float(x) for x in v])
    add("list", ["matrix"], None, lambda m: [[float(x) for x in row] for row in m])
    add("listval", ["?", "number"], None, _listval, tokens=True)
    add("listval", ["?", "range"], None, _listval, tokens=True)

    # vectors and matrices
    add("vector", ["*number"], TVector, lambda *xs: [_real_scalar(x, "vector") for x in xs])
    add("vector", ["list"], TVector, lambda l: [_real_scalar(x, "vector") for x in _numbers(l, "vector")])
    add("matrix", ["*list"], TMatrix, _matrix_from_rows)
    add("matrix", ["*vector"], TMatrix, lambda *rows: _matrix_from_rows(*[[TNum(float(x)) for x in r] for r in rows]))
    add("rowvector", ["*number"], TMatrix, lambda *xs: [[_real_scalar(x, "rowvector") for x in xs]])
    add("rowvector", ["list"], TMatrix, lambda l: [[_real_scalar(x, "rowvector") for x in _numbers(l, "rowvector")]])
    for a in ("vector", "matrix"):
        for b in ("vector", "matrix"):
            add("dot", [a, b], TNum, lambda u, v: vector_utils.vector_dot(vector_utils.as_vector(u), vector_utils.as_vector(v)))
            add("cross", [a, b], TVector, vector_utils.vector_cross)
    add("det", ["matrix"], TNum, vector_utils.determinant)
    add("transpose", ["matrix"], TMatrix, vector_utils.matrix_transpose)
    add("transpose", ["vector"], TMatrix, vector_utils.vector_transpose)
    add("id", ["number"], TMatrix, vector_utils.identity)

    # sets
    add("set", ["list"], TSet, lambda l: l)
    add("set", ["range"], TSet, lambda r: TSet(_range_numbers(r)), tokens=True)
    add("set", ["*?"], TSet, lambda *items: TSet(items), tokens=True)
    add("union", ["set", "set"], TSet, set_utils.union)
    add("intersection", ["set", "set"], TSet, set_utils.intersection)

    # numbers
    add("abs", ["number"], TNum, math_utils.abs_)
    add("abs", ["vector"], TNum, vector_utils.vector_abs)
    add("abs", ["list"], TNum, len)
    add("abs", ["set"], TNum, len)
    add("abs", ["string"], TNum, len)
    add("abs", ["range"], TNum, len)
    for name, fn in SCALAR_FUNCTIONS.items():
        add(name, ["number"], TNum, fn)
    add("log", ["number", "number"], TNum, lambda a, b: math_utils.div(math_utils.log(a), math_utils.log(b)))
    add("isint", ["number"], TBool, math_utils.is_int)
    add("isnan", ["number"], TBool, math_utils.is_nan)
    add("mod", ["number", "number"], TNum, math_utils.mod)
    add("root", ["number", "number"], TNum, math_utils.root)
    add("max", ["number", "number"], TNum, math_utils.max_)
    add("min", ["number", "number"], TNum, math_utils.min_)
    add("max", ["list"], TNum, lambda l: _extremum(math_utils.max_, l, "max"))
    add("min", ["list"], TNum, lambda l: _extremum(math_utils.min_, l, "min"))
    add("perm", ["number", "number"], TNum, math_utils.permutations)
    add("comb", ["number", "number"], TNum, math_utils.combinations)
    add("gcd", ["number", "number"], TNum, math_utils.gcf)
    add("gcd_without_pi_or_i", ["number", "number"], TNum, math_utils.gcd_without_pi_or_i)
    add("lcm", ["*number"], TNum, lambda *xs: math_utils.lcm_list(xs))
    add("lcm", ["list"], TNum, lambda l: math_utils.lcm_list(_numbers(l, "lcm")))
    add("award", ["number", "boolean"], TNum, lambda a, b: a if b else 0.0)
    add("factorise", ["number"], None, math_utils.factorise)

    # rounding and formatting
    add("precround", ["number", "number"], TNum, math_utils.precround)
    add("precround", ["vector", "number"], TVector, vector_utils.vector_precround)
    add("precround", ["matrix", "number"], TMatrix, vector_utils.matrix_precround)
    add("siground", ["number", "number"], TNum, math_utils.siground)
    add("siground", ["vector", "number"], TVector, _elementwise(math_utils.siground))
    add("siground", ["matrix", "number"], TMatrix, _elementwise(math_utils.siground))
    add("dpformat", ["number", "number"], TString,
        lambda n, p: math_utils.nice_number(n, {"precisionType": "dp", "precision": p}))
    add("sigformat", ["number", "number"], TString,
        lambda n, p: math_utils.nice_number(n, {"precisionType": "sigfig", "precision": p}))

    # lists
    add("sum", ["list"], TNum, lambda l: reduce(math_utils.add, _numbers(l, "sum"), 0.0))
    add("sum", ["vector"], TNum, lambda v: float(np.sum(v)))
    add("prod", ["list"], TNum, lambda l: reduce(math_utils.mul, _numbers(l, "prod"), 1.0))
    add("prod", ["vector"], TNum, lambda v: float(np.prod(v)))
    add("sort", ["list"], TList, _sort)
    add("deal", ["number"], None, math_utils.deal)
    add("shuffle", ["list"], TList, math_utils.shuffle)
    add("shuffle", ["range"], TList, lambda r: TList(math_utils.shuffle(_range_numbers(r))), tokens=True)

    # random
    add("random", ["range"], TNum, lambda r: TNum(math_utils.random_range(r.start, r.end, r.step, r.value)), tokens=True)
    add("random", ["list"], None, math_utils.choose)
    add("random", ["*?"], None, lambda *items: math_utils.choose(items), tokens=True)

    # strings
    add("string", ["?"], TString, _as_text, tokens=True)
    add("latex", ["?"], TString, lambda tok: TString(texify(Tree(tok)), latex=True), tokens=True)
    add("capitalise", ["string"], TString, _capitalise)
    add("upper", ["string"], TString, str.upper)
    add("lower", ["string"], TString, str.lower)
    add("pluralise", ["number", "string", "string"], TString, _pluralise)

    for name, fn in LAZY_CONSTRUCTS.items():
        scope.add_function(LazySignature(name, fn, description=fn.__doc__ or ""))

    for name, ruleset in BUILTIN_RULESETS.items():
        scope.add_ruleset(name, ruleset)

    logger.debug("builtin scope: %d function names, %d rulesets", len(scope.functions), len(scope.rulesets))
    return scope.freeze()


builtin_scope = build_builtin_scope()
