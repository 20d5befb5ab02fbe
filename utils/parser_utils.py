from __future__ import annotations

from utils.math_utils import E, INF, NAN, PI


# Operator precedence: lower numbers bind tighter.
PRECEDENCE: dict[str, float] = {
    ";": 0,
    "fact": 1,
    "not": 1,
    "+u": 2.5,
    "-u": 2.5,
    "^": 2,
    "*": 3,
    "/": 3,
    "+": 4,
    "-": 4,
    "|": 5,
    "..": 5,
    "#": 6,
    "except": 6.5,
    "in": 6.5,
    "<": 7,
    ">": 7,
    "<=": 7,
    ">=": 7,
    "<>": 8,
    "=": 8,
    "isa": 9,
    "and": 11,
    "or": 12,
    "xor": 13,
    "implies": 14,
}

RIGHT_ASSOCIATIVE = frozenset({"^", "+u", "-u"})

# Operators with one operand.  All others take two.
ARITY: dict[str, int] = {
    "!": 1,
    "not": 1,
    "fact": 1,
    "+u": 1,
    "-u": 1,
}

OP_SYNONYMS: dict[str, str] = {
    "&": "and",
    "&&": "and",
    "divides": "|",
    "||": "or",
}

FUNCTION_SYNONYMS: dict[str, str] = {
    "sqr": "sqrt",
    "gcf": "gcd",
    "sgn": "sign",
    "len": "abs",
    "length": "abs",
}

# Form taken by an operator where a value is expected (prefix) or after a
# value (postfix).
PREFIX_FORM: dict[str, str] = {
    "+": "+u",
    "-": "-u",
    "!": "not",
    "not": "not",
}

POSTFIX_FORM: dict[str, str] = {
    "!": "fact",
}

# Names the tokenizer turns straight into number tokens.
BUILTIN_CONSTANTS: dict[str, complex | float] = {
    "e": E,
    "pi": PI,
    "i": 1j,
    "infinity": INF,
    "infty": INF,
    "nan": NAN,
}

COMMUTATIVE = frozenset({"*", "+", "and", "or", "="})

# Operators written as words, printed with spaces around them.
WORD_OPERATORS = frozenset({"and", "or", "not", "xor", "isa", "except", "in", "implies", "divides"})


def precedence(op_name: str) -> float:
    return PRECEDENCE.get(op_name, 0)


def content_split_brackets(text: str) -> list[str]:
    """Split a string at top-level curly brackets.

    Even-indexed entries of the result are plain text and odd-indexed entries
    are the contents of ``{...}`` groups.  Nested brackets stay inside their
    group and ``\\{``/``\\}`` are literal braces.

    Parameters
    ----------
    text : str
        A string token's value.

    Returns
    -------
    list[str]
        Alternating text and bracketed content; always of odd length.

    Examples
    --------
    >>> from utils.parser_utils import content_split_brackets
    >>> content_split_brackets("x = {x}!")
    ['x = ', 'x', '!']
    >>> content_split_brackets("{f({a})}")
    ['', 'f({a})', '']
    >>> content_split_brackets("no brackets")
    ['no brackets']
    """
    bits: list[str] = []
    current: list[str] = []
    depth = 0
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text) and text[i + 1] in "{}":
            current.append(text[i:i + 2] if depth else text[i + 1])
            i += 2
            continue
        if c == "{":
            if depth == 0:
                bits.append("".join(current))
                current = []
            else:
                current.append(c)
            depth += 1
        elif c == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                bits.append("".join(current))
                current = []
            else:
                current.append(c)
        else:
            current.append(c)
        i += 1
    if depth > 0:
        # unbalanced: keep the rest as plain text
        bits[-1] += "{" + "".join(current)
    else:
        bits.append("".join(current))
    return bits
