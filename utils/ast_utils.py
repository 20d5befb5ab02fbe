from __future__ import annotations

from typing import Any, Iterator, Literal, Optional, Sequence

import numpy as np

from utils import math_utils
from utils import vector_utils


# TOKEN TYPE DEFINITIONS
# The tokenizer produces a flat list of tokens and the parser arranges them
# into a tree of ``Tree`` nodes.  Every token carries exactly one ``type``
# tag; evaluation maps trees to value tokens of the same family.

TokenType = Literal[
    "number", "string", "boolean",          # scalar values
    "name",                                 # variable references
    "op", "function",                       # applications
    "list", "vector", "matrix",             # compound values
    "range", "set",
    "punc",                                 # parser-only punctuation
]


class Token:
    """Base class of every token.  Subclasses set the ``type`` tag."""

    type: TokenType

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return tokens_equal(self, other)

    __hash__ = None  # type: ignore[assignment]


class TNum(Token):
    type = "number"

    def __init__(self, value: Any) -> None:
        self.value = math_utils.to_number(value)

    def __repr__(self) -> str:
        return f"TNum({self.value!r})"


class TString(Token):
    type = "string"

    def __init__(self, value: str, safe: bool = False, latex: bool = False) -> None:
        self.value = value
        self.safe = safe
        self.latex = latex

    def __repr__(self) -> str:
        return f"TString({self.value!r})"


class TBool(Token):
    type = "boolean"

    def __init__(self, value: bool) -> None:
        self.value = bool(value)

    def __repr__(self) -> str:
        return f"TBool({self.value!r})"


class TName(Token):
    """A variable reference.  ``annotation`` holds display hints such as
    ``["vector"]`` for the source ``vector:x``."""

    type = "name"

    def __init__(self, name: str, annotation: Optional[Sequence[str]] = None) -> None:
        self.name = name
        self.annotation = list(annotation) if annotation else []

    @property
    def key(self) -> str:
        return self.name.lower()

    def __repr__(self) -> str:
        if self.annotation:
            return f"TName({self.name!r}, {self.annotation!r})"
        return f"TName({self.name!r})"


class TOp(Token):
    type = "op"

    def __init__(self, name: str, arity: int = 2, prefix: bool = False, postfix: bool = False) -> None:
        self.name = name
        self.arity = arity
        self.prefix = prefix
        self.postfix = postfix

    def __repr__(self) -> str:
        return f"TOp({self.name!r})"


class TFunc(Token):
    type = "function"

    def __init__(self, name: str, arity: int = 0) -> None:
        self.name = name
        self.arity = arity

    def __repr__(self) -> str:
        return f"TFunc({self.name!r}, {self.arity})"


class TList(Token):
    """A list.  Parsed list literals only know their arity (``vars``);
    evaluated lists carry their elements in ``value``."""

    type = "list"

    def __init__(self, value: Optional[Sequence[Token]] = None, vars: Optional[int] = None) -> None:
        self.value = list(value) if value is not None else None
        self.vars = len(self.value) if self.value is not None else (vars or 0)

    def __repr__(self) -> str:
        if self.value is None:
            return f"TList(vars={self.vars})"
        return f"TList({self.value!r})"


class TVector(Token):
    type = "vector"

    def __init__(self, value: Any) -> None:
        self.value = np.asarray(value, dtype=float).reshape(-1)

    def __repr__(self) -> str:
        return f"TVector({self.value.tolist()!r})"


class TMatrix(Token):
    type = "matrix"

    def __init__(self, value: Any) -> None:
        arr = np.asarray(value, dtype=float)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1) if arr.size else arr.reshape(0, 0)
        self.value = arr

    @property
    def rows(self) -> int:
        return self.value.shape[0]

    @property
    def columns(self) -> int:
        return self.value.shape[1]

    def __repr__(self) -> str:
        return f"TMatrix({self.value.tolist()!r})"


class TRange(Token):
    """``start..end#step``.  A zero step is a continuous interval and has no
    discrete ``value``."""

    type = "range"

    def __init__(self, start: float, end: float, step: float = 1.0) -> None:
        self.start = float(start)
        self.end = float(end)
        self.step = float(step)
        self.value = math_utils.range_values(self.start, self.end, self.step)

    @property
    def continuous(self) -> bool:
        return self.step == 0

    def __repr__(self) -> str:
        return f"TRange({self.start!r}, {self.end!r}, {self.step!r})"


class TSet(Token):
    type = "set"

    def __init__(self, value: Sequence[Token]) -> None:
        from utils.set_utils import distinct
        self.value = distinct(value)

    def __repr__(self) -> str:
        return f"TSet({self.value!r})"


class TPunc(Token):
    """``(``, ``)``, ``[``, ``]`` or ``,``.  Never appears in a finished tree."""

    type = "punc"

    def __init__(self, kind: str) -> None:
        self.kind = kind

    def __repr__(self) -> str:
        return f"TPunc({self.kind!r})"


class Tree:
    """A node of a parsed expression: a token and, for applications and
    list literals, a tuple of child trees."""

    __slots__ = ("token", "args")

    def __init__(self, token: Token, args: Optional[Sequence["Tree"]] = None) -> None:
        self.token = token
        self.args = tuple(args) if args is not None else None

    def __repr__(self) -> str:
        if self.args is None:
            return f"Tree({self.token!r})"
        return f"Tree({self.token!r}, {list(self.args)!r})"


def tokens_equal(a: Token, b: Token) -> bool:
    """Value equality between two tokens.

    Numbers compare real and imaginary parts, so a real number equals a
    complex number with zero imaginary part.  Vectors are padded with zeros
    before comparing; sets compare as unordered collections.

    Parameters
    ----------
    a, b : Token
        Tokens of any type.

    Returns
    -------
    bool
        ``True`` if the two tokens have the same type and equal values.

    Examples
    --------
    >>> tokens_equal(TNum(2), TNum(complex(2, 0)))
    True
    >>> tokens_equal(TVector([1, 2]), TVector([1, 2, 0]))
    True
    >>> tokens_equal(TName("X"), TName("x"))
    True
    >>> tokens_equal(TNum(1), TString("1"))
    False
    """
    if a.type != b.type:
        return False
    kind = a.type
    if kind == "number":
        return math_utils.eq(a.value, b.value)
    if kind in ("string", "boolean"):
        return a.value == b.value
    if kind == "name":
        return a.key == b.key and a.annotation == b.annotation
    if kind in ("op", "function"):
        return a.name == b.name
    if kind == "vector":
        return vector_utils.vector_eq(a.value, b.value)
    if kind == "matrix":
        return vector_utils.matrix_eq(a.value, b.value)
    if kind == "range":
        return a.start == b.start and a.end == b.end and a.step == b.step
    if kind == "list":
        if a.value is None or b.value is None:
            return a.value is None and b.value is None and a.vars == b.vars
        return len(a.value) == len(b.value) and all(
            tokens_equal(x, y) for x, y in zip(a.value, b.value))
    if kind == "set":
        from utils.set_utils import contains
        return len(a.value) == len(b.value) and all(contains(b.value, x) for x in a.value)
    if kind == "punc":
        return a.kind == b.kind
    return False


def trees_equal(a: Optional[Tree], b: Optional[Tree]) -> bool:
    """Structural equality of two trees, using :func:`tokens_equal` at
    every node.

    Examples
    --------
    >>> x = Tree(TName("x"))
    >>> trees_equal(Tree(TOp("+"), [x, Tree(TNum(1))]), Tree(TOp("+"), [x, Tree(TNum(1.0))]))
    True
    """
    if a is None or b is None:
        return a is b
    if not tokens_equal(a.token, b.token):
        return False
    if a.args is None or b.args is None:
        return not a.args and not b.args
    return len(a.args) == len(b.args) and all(
        trees_equal(x, y) for x, y in zip(a.args, b.args))


def iter_subtrees(tree: Tree) -> Iterator[Tree]:
    """Yield *tree* and all its descendants, parents before children."""
    yield tree
    for arg in tree.args or ():
        yield from iter_subtrees(arg)


def is_op(tree: Tree, name: Optional[str] = None) -> bool:
    return tree.token.type == "op" and (name is None or tree.token.name == name)


def is_function(tree: Tree, name: Optional[str] = None) -> bool:
    return tree.token.type == "function" and (name is None or tree.token.name == name)


def wrap_value(value: Any) -> Token:
    """Wrap a Python value as a token.

    Examples
    --------
    >>> wrap_value(3)
    TNum(3.0)
    >>> wrap_value([1, True])
    TList([TNum(1.0), TBool(True)])
    """
    if isinstance(value, Token):
        return value
    if isinstance(value, (bool, np.bool_)):
        return TBool(bool(value))
    if isinstance(value, (int, float, complex, np.number)):
        return TNum(complex(value) if isinstance(value, (complex, np.complexfloating)) else float(value))
    if isinstance(value, str):
        return TString(value)
    if isinstance(value, np.ndarray):
        return TVector(value) if value.ndim == 1 else TMatrix(value)
    if isinstance(value, (list, tuple)):
        return TList([wrap_value(v) for v in value])
    raise TypeError(f"can't make a token from {type(value).__name__}")


def unwrap_value(token: Token) -> Any:
    """Inverse of :func:`wrap_value`: lists and sets become Python lists,
    ranges their discrete values, vectors and matrices numpy arrays.

    Examples
    --------
    >>> unwrap_value(TList([TNum(1), TString("a")]))
    [1.0, 'a']
    >>> unwrap_value(TRange(1, 3, 1))
    [1.0, 2.0, 3.0]
    """
    kind = token.type
    if kind in ("list", "set"):
        return [unwrap_value(t) for t in token.value or []]
    if kind in ("number", "string", "boolean", "range", "vector", "matrix"):
        return token.value
    if kind == "name":
        return token.name
    raise TypeError(f"can't unwrap a {kind} token")
