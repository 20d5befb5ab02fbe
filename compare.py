from __future__ import annotations

import logging
import random
from typing import Any, Callable, Mapping, Optional, Union

from errors import JMEError
from library import builtin_scope
from parser import compile
from runtime import Scope, evaluate, findvars
from utils import math_utils
from utils.ast_utils import TNum, Token, Tree, tokens_equal

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "checkingType": "reldiff",
    "checkingAccuracy": 0.0001,
    "vsetRangeStart": 0,
    "vsetRangeEnd": 1,
    "vsetRangePoints": 5,
    "failureRate": 1,
}

# Errors a student's expression can cause while being marked.
MARKING_ERRORS = (JMEError, ArithmeticError, ValueError, TypeError)

CheckingFunction = Callable[[math_utils.Number, math_utils.Number, float], bool]


def _infinite(x: math_utils.Number) -> bool:
    return math_utils.is_infinite(x)


def absdiff(r1: math_utils.Number, r2: math_utils.Number, tolerance: float) -> bool:
    if _infinite(r1) or _infinite(r2):
        return r1 == r2
    return abs(r1 - r2) <= abs(tolerance)


def reldiff(r1: math_utils.Number, r2: math_utils.Number, tolerance: float) -> bool:
    if _infinite(r1) or _infinite(r2):
        return r1 == r2
    if r2 != 0:
        return abs(r1 - r2) <= abs(r2 * tolerance)
    return abs(r1 - r2) <= tolerance


def dp(r1: math_utils.Number, r2: math_utils.Number, tolerance: float) -> bool:
    if _infinite(r1) or _infinite(r2):
        return r1 == r2
    tolerance = math_utils.floor(abs(tolerance))
    return math_utils.eq(math_utils.precround(r1, tolerance), math_utils.precround(r2, tolerance))


def sigfig(r1: math_utils.Number, r2: math_utils.Number, tolerance: float) -> bool:
    if _infinite(r1) or _infinite(r2):
        return r1 == r2
    tolerance = math_utils.floor(abs(tolerance))
    return math_utils.eq(math_utils.siground(r1, tolerance), math_utils.siground(r2, tolerance))


CHECKING_FUNCTIONS: dict[str, CheckingFunction] = {
    "absdiff": absdiff,
    "reldiff": reldiff,
    "dp": dp,
    "sigfig": sigfig,
}


def results_equal(r1: Token, r2: Token, checking_function: CheckingFunction, accuracy: float) -> bool:
    """Compare two values with a checking function.

    Numbers are compared with *checking_function*; lists, vectors and
    matrices element by element, failing if their sizes differ.  Other
    values must be equal.

    Examples
    --------
    >>> from utils.ast_utils import TList
    >>> results_equal(TList([TNum(1), TNum(2)]), TList([TNum(1.00001), TNum(2)]), absdiff, 0.001)
    True
    >>> results_equal(TList([TNum(1)]), TList([TNum(1), TNum(2)]), absdiff, 0.001)
    False
    """
    if r1.type != r2.type:
        return False
    kind = r1.type
    if kind == "number":
        return checking_function(r1.value, r2.value, accuracy)
    if kind in ("vector", "matrix"):
        if r1.value.shape != r2.value.shape:
            return False
        return all(checking_function(float(a), float(b), accuracy)
                   for a, b in zip(r1.value.reshape(-1), r2.value.reshape(-1)))
    if kind == "list":
        return len(r1.value) == len(r2.value) and all(
            results_equal(a, b, checking_function, accuracy) for a, b in zip(r1.value, r2.value))
    return tokens_equal(r1, r2)


def _free_names(tree: Tree, scope: Scope) -> list[str]:
    return [n for n in findvars(tree, scope=scope) if scope.get_variable(n) is None and not n.startswith("$")]


def compare(
    expr1: Union[str, Tree, None],
    expr2: Union[str, Tree, None],
    settings: Optional[Mapping[str, Any]] = None,
    scope: Optional[Scope] = None,
) -> bool:
    """Decide whether a student's expression is the same as the correct one.

    Both expressions are evaluated, either once or, if they have free
    variables, at ``vsetRangePoints`` random points drawn uniformly from
    ``[vsetRangeStart, vsetRangeEnd]``.  They are the same if fewer than
    ``failureRate`` points give results that differ according to the
    checking function.

    Never raises: an expression that fails to compile or evaluate is not
    equal to anything.

    Parameters
    ----------
    expr1 : str or Tree
        The student's expression.  Its free variables must be exactly
        those of *expr2*, or the two are not the same.
    expr2 : str or Tree
        The correct expression.
    settings : mapping or None
        Overrides of :data:`DEFAULT_SETTINGS`.
    scope : Scope or None
        Defaults to the builtin scope.  Names bound in it are not treated
        as free variables.

    Returns
    -------
    bool

    Examples
    --------
    >>> compare("x*x", "x^2")
    True
    >>> compare("x^2 + 0.5", "x^2", {"checkingType": "absdiff", "checkingAccuracy": 0.001})
    False
    >>> compare("y", "x")
    False
    """
    settings = {**DEFAULT_SETTINGS, **(settings or {})}
    scope = scope if scope is not None else builtin_scope
    checking_function = CHECKING_FUNCTIONS[settings["checkingType"].lower()]
    accuracy = float(settings["checkingAccuracy"])

    try:
        tree1 = compile(expr1, scope) if isinstance(expr1, str) else expr1
        tree2 = compile(expr2, scope) if isinstance(expr2, str) else expr2
        if tree1 is None or tree2 is None:
            return tree1 is None and tree2 is None
        names1 = _free_names(tree1, scope)
        names = _free_names(tree2, scope)
    except MARKING_ERRORS as e:
        logger.debug("compare: couldn't compile: %s", e)
        return False
    if set(names1) != set(names):
        logger.debug("compare: variables differ: %s and %s", names1, names)
        return False

    if not names:
        try:
            return results_equal(evaluate(tree1, scope), evaluate(tree2, scope), checking_function, accuracy)
        except MARKING_ERRORS as e:
            logger.debug("compare: couldn't evaluate: %s", e)
            return False

    start = float(settings["vsetRangeStart"])
    end = float(settings["vsetRangeEnd"])
    failures = 0
    for _ in range(int(settings["vsetRangePoints"])):
        point = {name: TNum(random.uniform(start, end)) for name in names}
        point_scope = Scope([scope, {"variables": point}])
        try:
            equal = results_equal(evaluate(tree1, point_scope), evaluate(tree2, point_scope),
                                  checking_function, accuracy)
        except MARKING_ERRORS as e:
            logger.debug("compare: failed at %s: %s", point, e)
            equal = False
        if not equal:
            failures += 1
    return failures < settings["failureRate"]
