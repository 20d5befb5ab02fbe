from __future__ import annotations

import itertools
from typing import Any, Callable, Optional, Sequence

from utils.ast_utils import Token, Tree, unwrap_value, wrap_value
from utils.type_checker_utils import TypeSpec, signature_matches, type_to_str

# Registration order of every signature ever created.  Scopes sort the
# signatures of a name by this so that merging scopes keeps the order in
# which definitions were made.
_registration = itertools.count()


class FunctionSignature:
    """One overload of a JME function or operator.

    Dispatch takes the first signature, in registration order, whose input
    pattern fits the evaluated arguments.  The handler ``fn`` is called in
    one of three ways:

    * by default with the plain values of the arguments (numbers, strings,
      numpy arrays, lists of tokens ...), its result wrapped with
      ``outcons``;
    * with ``unwrap=True`` lists, sets and ranges are unwrapped recursively
      to Python lists first;
    * with ``tokens=True`` with the argument tokens themselves;
    * with ``lazy=True`` with the *unevaluated* argument trees and the
      scope, returning a token.

    Parameters
    ----------
    name : str
        Function or operator name, e.g. ``"+"`` or ``"sqrt"``.
    intype : sequence of str
        Input type pattern (see :func:`utils.type_checker_utils.signature_matches`).
    outcons : callable or None
        Token class (or factory) for the result.  ``None`` means
        :func:`utils.ast_utils.wrap_value` works it out.
    fn : callable
        The handler.

    Examples
    --------
    >>> from utils.ast_utils import TNum
    >>> add = FunctionSignature("+", ["number", "number"], TNum, lambda a, b: a + b)
    >>> add.typecheck([TNum(1), TNum(2)])
    True
    >>> add.evaluate([TNum(1), TNum(2)], None)
    TNum(3.0)
    """

    def __init__(
        self,
        name: str,
        intype: Sequence[TypeSpec],
        outcons: Optional[Callable[[Any], Token]],
        fn: Callable[..., Any],
        *,
        lazy: bool = False,
        tokens: bool = False,
        unwrap: bool = False,
        description: str = "",
    ) -> None:
        self.name = name
        self.intype = list(intype)
        self.outcons = outcons
        self.fn = fn
        self.lazy = lazy
        self.tokens = tokens
        self.unwrap = unwrap
        self.description = description
        self.id = next(_registration)

    def typecheck(self, args: Sequence[Token]) -> bool:
        return signature_matches(self.intype, args)

    def evaluate(self, args: Sequence[Any], scope: Any) -> Token:
        if self.lazy:
            return self.fn(args, scope)
        if self.tokens:
            values = list(args)
        elif self.unwrap:
            values = [unwrap_value(a) for a in args]
        else:
            values = [a.value for a in args]
        result = self.fn(*values)
        if isinstance(result, Token):
            return result
        if self.outcons is None:
            return wrap_value(result)
        return self.outcons(result)

    def __repr__(self) -> str:
        return f"<FunctionSignature {self.name}{type_to_str(self.intype)}>"


class LazySignature(FunctionSignature):
    """Signature of a construct that controls evaluation of its own
    arguments, such as ``if`` or ``map``."""

    def __init__(self, name: str, fn: Callable[[Sequence[Tree], Any], Token], description: str = "") -> None:
        super().__init__(name, ["*?"], None, fn, lazy=True, description=description)
