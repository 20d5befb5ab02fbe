from __future__ import annotations

from typing import Sequence

from utils.ast_utils import Token, tokens_equal


# Sets are lists of tokens with no two elements equal under ``tokens_equal``;
# the order of first appearance is kept.


def contains(items: Sequence[Token], token: Token) -> bool:
    return any(tokens_equal(item, token) for item in items)


def distinct(items: Sequence[Token]) -> list[Token]:
    """Drop repeated elements, keeping the first occurrence.

    Examples
    --------
    >>> from utils.ast_utils import TNum
    >>> distinct([TNum(1), TNum(2), TNum(1.0)])
    [TNum(1.0), TNum(2.0)]
    """
    out: list[Token] = []
    for item in items:
        if not contains(out, item):
            out.append(item)
    return out


def union(a: Sequence[Token], b: Sequence[Token]) -> list[Token]:
    return distinct(list(a) + list(b))


def intersection(a: Sequence[Token], b: Sequence[Token]) -> list[Token]:
    return [x for x in distinct(a) if contains(b, x)]


def minus(a: Sequence[Token], b: Sequence[Token]) -> list[Token]:
    return [x for x in distinct(a) if not contains(b, x)]
