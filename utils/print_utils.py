from __future__ import annotations

import sys
from typing import Optional, Sequence

from display import token_to_jme
from errors import JMEError
from utils.ast_utils import Token, Tree


def print_errors(errors: Sequence[JMEError], file=None) -> None:
    """Print engine errors, one per line, with their kinds.

    Parameters
    ----------
    errors : sequence of JMEError
        The errors to report.
    file : file-like or None
        Where to write, ``sys.stderr`` by default.

    Examples
    --------
    >>> from errors import ParseError
    >>> print_errors([ParseError("jme.shunt.no right bracket")], file=sys.stdout)
      ✗ No matching right bracket [jme.shunt.no right bracket]
    """
    file = file or sys.stderr
    for error in errors:
        print(f"  ✗ {error.message} [{error.kind}]", file=file)


def _label(tok: Token) -> str:
    kind = tok.type
    if kind in ("op", "function"):
        return tok.name
    if kind == "list" and tok.value is None:
        return "list"
    if kind == "name" and tok.annotation:
        return ":".join(tok.annotation + [tok.name])
    return token_to_jme(tok)


def format_tree(tree: Optional[Tree], indent: int = 0) -> str:
    """Pretty-format an expression tree with indentation.

    Applications whose arguments are all leaves are kept on one line when it
    fits within 80 columns; others are expanded, one argument per line.

    Parameters
    ----------
    tree : Tree or None
        The expression.
    indent : int, default 0
        Current indentation level (each level = 2 spaces).

    Returns
    -------
    str
        A formatted, possibly multi-line string.

    Examples
    --------
    >>> from parser import compile
    >>> print(format_tree(compile("2x + 1")))
    +(
      *(2, x),
      1,
    )
    >>> format_tree(compile("f(a, [1, 2])"), indent=1)
    '  f(\\n    a,\\n    list(1, 2),\\n  )'
    """
    prefix = "  " * indent
    if tree is None:
        return f"{prefix}None"

    label = _label(tree.token)
    if tree.args is None:
        return f"{prefix}{label}"

    if all(a.args is None for a in tree.args):
        items = ", ".join(_label(a.token) for a in tree.args)
        oneline = f"{prefix}{label}({items})"
        if len(oneline) <= 80:
            return oneline

    lines = [f"{prefix}{label}("]
    for arg in tree.args:
        lines.append(f"{format_tree(arg, indent + 1)},")
    lines.append(f"{prefix})")
    return "\n".join(lines)
