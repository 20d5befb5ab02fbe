from __future__ import annotations

from typing import Sequence, Union

from utils.ast_utils import Token


# A signature's input pattern is a sequence of type tags:
#   "number", "list", ...   one argument of exactly that type
#   "?"                     one argument of any type
#   "*number"               all remaining arguments, each a number
#   "*?"                    all remaining arguments, whatever their type
TypeSpec = str
ArgTypes = Sequence[Union[Token, str]]


def _type_of(arg: Union[Token, str]) -> str:
    return arg if isinstance(arg, str) else arg.type


def type_matches(expected: TypeSpec, actual: str) -> bool:
    """Check one argument type against one pattern entry.

    Examples
    --------
    >>> from utils.type_checker_utils import type_matches
    >>> type_matches("?", "vector")
    True
    >>> type_matches("number", "string")
    False
    """
    return expected == "?" or actual == "?" or expected == actual


def signature_matches(intype: Sequence[TypeSpec], args: ArgTypes) -> bool:
    """Check whether a list of arguments fits an input type pattern.

    A ``*T`` entry consumes every remaining argument, all of which must have
    type ``T``; arguments left over after the pattern is exhausted make the
    match fail.

    Parameters
    ----------
    intype : sequence of str
        The signature's input pattern, e.g. ``["number", "*number"]``.
    args : sequence of Token or str
        Evaluated arguments, or their type tags.

    Returns
    -------
    bool
        ``True`` if every argument is accounted for by the pattern.

    Examples
    --------
    >>> from utils.type_checker_utils import signature_matches
    >>> signature_matches(["number", "number"], ["number", "number"])
    True
    >>> signature_matches(["*number"], [])
    True
    >>> signature_matches(["list", "*number"], ["list", "number", "string"])
    False
    >>> signature_matches(["?"], ["number", "number"])
    False
    """
    remaining = [_type_of(a) for a in args]
    for expected in intype:
        if expected.startswith("*"):
            rest_type = expected[1:]
            if not all(type_matches(rest_type, actual) for actual in remaining):
                return False
            remaining = []
        else:
            if not remaining or not type_matches(expected, remaining[0]):
                return False
            remaining = remaining[1:]
    return not remaining


def type_to_str(intype: Sequence[TypeSpec]) -> str:
    """Readable form of an input pattern, used in error messages.

    Examples
    --------
    >>> from utils.type_checker_utils import type_to_str
    >>> type_to_str(["number", "*number"])
    '(number, number...)'
    >>> type_to_str([])
    '()'
    """
    parts = [t[1:] + "..." if t.startswith("*") else t for t in intype]
    return "(" + ", ".join(parts) + ")"


def describe_args(args: ArgTypes) -> str:
    return ", ".join(_type_of(a) for a in args)
