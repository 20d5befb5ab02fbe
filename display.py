from __future__ import annotations

import math
import re
from typing import Any, Optional

from utils import math_utils
from utils.ast_utils import Token, Tree
from utils.parser_utils import RIGHT_ASSOCIATIVE, WORD_OPERATORS, precedence

Settings = Optional[dict[str, Any]]

# Operators whose source text differs from their name.
OP_TEXT: dict[str, str] = {
    "+u": "+",
    "-u": "-",
    "+": " + ",
    "-": " - ",
    "not": "not ",
    "fact": "!",
}

PREFIX_OPS = frozenset({"+u", "-u", "not"})

_PLAIN_NUMBER = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")


# ----------------------
# Brackets
# ----------------------

def _number_precedence(text: str) -> tuple[Optional[str], bool]:
    """Operator a rendered number behaves like, and whether it starts with
    a prefix minus.  ``"-2"`` acts like ``-u``, ``"1 + 2*i"`` like ``+``."""
    if text.startswith("-"):
        return "-u", True
    if " + " in text or " - " in text:
        return "+", False
    if "/" in text:
        return "/", False
    if "*" in text or " " in text:
        return "*", False
    if "^" in text:
        return "^", False
    return None, False


def _child_precedence(tree: Tree, settings: Settings) -> tuple[Optional[str], bool]:
    tok = tree.token
    if tok.type == "op":
        return tok.name, tok.name in PREFIX_OPS
    if tok.type == "number":
        return _number_precedence(jme_number(tok.value, settings))
    if tok.type == "range":
        return ("#" if tok.step not in (0, 1) else ".."), False
    return None, False


def needs_brackets(parent: Tree, index: int, settings: Settings = None) -> bool:
    """Whether argument *index* of the operator at *parent* must be
    bracketed to keep its meaning when written out.

    Examples
    --------
    >>> from parser import compile
    >>> needs_brackets(compile("(a+b)*c"), 0)
    True
    >>> needs_brackets(compile("a^b^c"), 1)
    False
    >>> needs_brackets(compile("(a^b)^c"), 0)
    True
    """
    child_name, child_prefix = _child_precedence(parent.args[index], settings)
    if child_name is None:
        return False
    op = parent.token.name
    p = precedence(op)
    q = precedence(child_name)
    if len(parent.args) == 1:
        return child_prefix or q > p
    if index > 0 and child_prefix:
        return True
    if q > p:
        return True
    if q == p:
        if op in RIGHT_ASSOCIATIVE:
            return index == 0
        return index > 0
    return False


# ----------------------
# JME source
# ----------------------

def jme_number(value: math_utils.Number, settings: Settings = None) -> str:
    """Render a number as JME source.

    With the ``fractionnumbers`` setting non-integers are written as
    fractions.

    Examples
    --------
    >>> jme_number(0.5)
    '0.5'
    >>> jme_number(0.5, {"fractionnumbers": True})
    '1/2'
    >>> jme_number(-2.0)
    '-2'
    """
    settings = settings or {}
    if (settings.get("fractionnumbers") and not math_utils.is_complex(value)
            and math.isfinite(value) and not math_utils.is_int(value)):
        n, d = math_utils.rational_approximation(value)
        if d != 1:
            return f"{n}/{d}"
        return str(n)
    return math_utils.nice_number(value, settings)


def jme_string(value: str) -> str:
    text = value.replace("\\", "\\\\")
    text = re.sub(r"\\\\([{}])", r"\\\1", text)
    text = text.replace("\n", "\\n").replace('"', '\\"')
    return '"' + text + '"'


def _jme_name(tok: Token) -> str:
    return ":".join(tok.annotation + [tok.name])


def _jme_range(tok: Token, settings: Settings) -> str:
    text = jme_number(tok.start, settings) + ".." + jme_number(tok.end, settings)
    if tok.step != 1:
        text += "#" + jme_number(tok.step, settings)
    return text


def token_to_jme(tok: Token, settings: Settings = None) -> str:
    """JME source for a value token.

    Examples
    --------
    >>> from utils.ast_utils import TVector, TBool
    >>> token_to_jme(TVector([1, 2]))
    'vector(1, 2)'
    >>> token_to_jme(TBool(False))
    'false'
    """
    kind = tok.type
    if kind == "number":
        return jme_number(tok.value, settings)
    if kind == "string":
        return jme_string(tok.value)
    if kind == "boolean":
        return "true" if tok.value else "false"
    if kind == "name":
        return _jme_name(tok)
    if kind == "range":
        return _jme_range(tok, settings)
    if kind == "list":
        return "[" + ", ".join(token_to_jme(t, settings) for t in tok.value or []) + "]"
    if kind == "set":
        return "set(" + ", ".join(token_to_jme(t, settings) for t in tok.value) + ")"
    if kind == "vector":
        return "vector(" + ", ".join(jme_number(float(x), settings) for x in tok.value) + ")"
    if kind == "matrix":
        rows = ["[" + ", ".join(jme_number(float(x), settings) for x in row) + "]" for row in tok.value]
        return "matrix(" + ", ".join(rows) + ")"
    if kind in ("op", "function"):
        return tok.name
    raise TypeError(f"can't write a {kind} token as JME")


def _elide_times(tree: Tree, left: str, right: str) -> bool:
    # 2x, 2(x+1), (a+b)x, (a+b)(c+d)
    a, b = tree.args
    left_ok = ((a.token.type == "number" and _PLAIN_NUMBER.fullmatch(left) is not None)
               or left.endswith(")"))
    right_ok = (b.token.type == "name"
                or (right.startswith("(") and not (b.token.type == "op" and b.token.name in PREFIX_OPS)
                    and not (b.token.type == "number" and right.startswith("(-"))))
    return left_ok and right_ok


def tree_to_jme(tree: Optional[Tree], settings: Settings = None) -> str:
    """Write an expression tree back out as JME source.

    Brackets are inserted only where operator precedence requires them, and
    multiplication signs are left out where the tokenizer would put them
    back (``2x``, ``(a+b)(c+d)``).

    Parameters
    ----------
    tree : Tree or None
        The expression.  ``None`` gives the empty string.
    settings : dict or None
        ``fractionnumbers`` writes non-integers as fractions; ``precisionType``
        and ``precision`` fix the number of decimal places or significant
        figures of numbers.  Otherwise numbers are written in full unless
        ``exact`` is turned off, which rounds them to 10 d.p.

    Returns
    -------
    str
        JME source that compiles to an equivalent tree.

    Examples
    --------
    >>> from parser import compile
    >>> tree_to_jme(compile("2*x + (y-1)*(y+1)"))
    '2x + (y - 1)(y + 1)'
    >>> tree_to_jme(compile("-(x^2)"))
    '-x^2'
    >>> tree_to_jme(compile("a - (b - c)"))
    'a - (b - c)'
    """
    if tree is None:
        return ""
    settings = settings or {}
    settings = {"exact": not settings.get("precisionType"), **settings}
    tok = tree.token
    args = tree.args or ()
    bits = [tree_to_jme(a, settings) for a in args]

    if tok.type == "list":
        if tree.args is None:
            return token_to_jme(tok, settings)
        return "[" + ", ".join(bits) + "]"

    if tok.type == "function":
        if tok.name == "listval" and len(bits) == 2:
            target = bits[0]
            if args[0].token.type == "op" or (args[0].token.type == "number" and target.startswith("-")):
                target = "(" + target + ")"
            return target + "[" + bits[1] + "]"
        return tok.name + "(" + ", ".join(bits) + ")"

    if tok.type == "op":
        name = tok.name
        for i in range(len(args)):
            if needs_brackets(tree, i, settings):
                bits[i] = "(" + bits[i] + ")"
        if len(bits) == 1:
            text = OP_TEXT.get(name, name + " " if name in WORD_OPERATORS else name)
            if tok.postfix or name == "fact":
                return bits[0] + text
            return text + bits[0]
        if name == "*" and _elide_times(tree, bits[0], bits[1]):
            return bits[0] + bits[1]
        if name in OP_TEXT:
            text = OP_TEXT[name]
        elif name in WORD_OPERATORS:
            text = f" {name} "
        else:
            text = name
        return text.join(bits)

    return token_to_jme(tok, settings)


# ----------------------
# TeX
# ----------------------

GREEK = frozenset({
    "alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta", "theta",
    "iota", "kappa", "lambda", "mu", "nu", "xi", "omicron", "pi", "rho",
    "sigma", "tau", "upsilon", "phi", "chi", "psi", "omega",
    "Gamma", "Delta", "Theta", "Lambda", "Xi", "Pi", "Sigma", "Upsilon",
    "Phi", "Psi", "Omega",
})

ANNOTATIONS = {
    "verb": lambda s: "\\verb|" + s + "|",
    "op": lambda s: "\\operatorname{" + s + "}",
    "v": lambda s: "\\boldsymbol{" + s + "}",
    "vector": lambda s: "\\boldsymbol{" + s + "}",
    "b": lambda s: "\\boldsymbol{" + s + "}",
    "bold": lambda s: "\\boldsymbol{" + s + "}",
    "unit": lambda s: "\\hat{" + s + "}",
    "hat": lambda s: "\\hat{" + s + "}",
    "dot": lambda s: "\\dot{" + s + "}",
    "m": lambda s: "\\boldsymbol{" + s + "}",
    "matrix": lambda s: "\\boldsymbol{" + s + "}",
    "diff": lambda s: "{\\mathrm{d}" + s + "}",
    "degrees": lambda s: s + "^{\\circ}",
    "complex": lambda s: s,
}

TEX_OPS = {
    "+": " + ",
    "-": " - ",
    "=": " = ",
    "<>": " \\neq ",
    "<": " \\lt ",
    ">": " \\gt ",
    "<=": " \\leq ",
    ">=": " \\geq ",
    "and": " \\wedge ",
    "or": " \\vee ",
    "xor": " \\, \\textrm{XOR} \\, ",
    "implies": " \\to ",
    "in": " \\in ",
    "except": " \\operatorname{except} ",
    "isa": " \\text{ is a } ",
    "..": " \\ldots ",
    "#": " \\, \\text{step} \\, ",
    "|": " | ",
    ";": ";",
}

TEX_PREFIX = {"+u": "+", "-u": "-", "not": "\\neg "}

# Functions LaTeX has a command for.
TEX_NAMED_FUNCTIONS = frozenset({
    "sin", "cos", "tan", "sec", "cot", "sinh", "cosh", "tanh", "coth",
    "arcsin", "arccos", "arctan", "arg", "det", "gcd", "max", "min", "exp",
})


def tex_number(value: math_utils.Number, settings: Settings = None) -> str:
    """TeX for a number.

    Examples
    --------
    >>> tex_number(math.pi * 2)
    '2 \\\\pi'
    >>> tex_number(0.75, {"fractionnumbers": True})
    '\\\\frac{3}{4}'
    >>> tex_number(complex(0, -1))
    '-i'
    """
    settings = settings or {}
    if math_utils.is_complex(value):
        if value.imag == 0:
            return tex_number(value.real, settings)
        if value.imag == 1:
            imag = "i"
        elif value.imag == -1:
            imag = "-i"
        else:
            imag = tex_number(value.imag, settings) + " i"
        if value.real == 0:
            return imag
        real = tex_number(value.real, settings)
        if imag.startswith("-"):
            return real + " - " + imag[1:]
        return real + " + " + imag
    if math.isnan(value):
        return "\\text{NaN}"
    if math.isinf(value):
        return "\\infty" if value > 0 else "-\\infty"
    if settings.get("fractionnumbers") and not math_utils.is_int(value):
        n, d = math_utils.rational_approximation(value)
        if d != 1:
            sign = "-" if n < 0 else ""
            return f"{sign}\\frac{{{abs(n)}}}{{{d}}}"
    text = math_utils.nice_number(value, settings)
    text = re.sub(r"\^(\d+)", r"^{\1}", text)
    return text.replace("pi", "\\pi")


def tex_name(name: str, annotation: Optional[list[str]] = None) -> str:
    """TeX for a variable name: greek letters, subscripts and annotations.

    Examples
    --------
    >>> tex_name("alpha")
    '\\\\alpha'
    >>> tex_name("x1")
    'x_{1}'
    >>> tex_name("v", ["vector"])
    '\\\\boldsymbol{v}'
    """
    primes = len(name) - len(name.rstrip("'"))
    name = name.rstrip("'").replace("$", "\\$")
    base, _, sub = name.partition("_")
    if not sub:
        m = re.fullmatch(r"([a-zA-Z]+?)([0-9]+)", base)
        if m:
            base, sub = m.groups()
    if base in GREEK:
        text = "\\" + base
    elif len(base) > 1 and base.isalpha():
        text = "\\mathrm{" + base + "}"
    else:
        text = base
    if sub:
        text += "_{" + tex_name(sub) + "}"
    for a in reversed(annotation or []):
        if a in ANNOTATIONS:
            text = ANNOTATIONS[a](text)
    return text + "'" * primes


def _tex_brackets(text: str) -> str:
    return "\\left ( " + text + " \\right )"


def _tex_vector(items: list[str], settings: Settings) -> str:
    sep = " & " if settings.get("rowvector") else " \\\\ "
    return "\\begin{pmatrix} " + sep.join(items) + " \\end{pmatrix}"


def _tex_matrix(rows: list[list[str]]) -> str:
    return "\\begin{pmatrix} " + " \\\\ ".join(" & ".join(row) for row in rows) + " \\end{pmatrix}"


def tex_token(tok: Token, settings: Settings = None) -> str:
    settings = settings or {}
    kind = tok.type
    if kind == "number":
        return tex_number(tok.value, settings)
    if kind == "string":
        if tok.latex:
            return tok.value
        return "\\textrm{" + tok.value.replace("\\{", "{").replace("\\}", "}") + "}"
    if kind == "boolean":
        return "\\textrm{" + ("true" if tok.value else "false") + "}"
    if kind == "name":
        return tex_name(tok.name, tok.annotation)
    if kind == "range":
        text = tex_number(tok.start, settings) + " \\ldots " + tex_number(tok.end, settings)
        if tok.step != 1:
            text += " \\, \\text{step} \\, " + tex_number(tok.step, settings)
        return text
    if kind == "list":
        return "\\left[ " + ", ".join(tex_token(t, settings) for t in tok.value or []) + " \\right]"
    if kind == "set":
        return "\\left\\{ " + ", ".join(tex_token(t, settings) for t in tok.value) + " \\right\\}"
    if kind == "vector":
        return _tex_vector([tex_number(float(x), settings) for x in tok.value], settings)
    if kind == "matrix":
        return _tex_matrix([[tex_number(float(x), settings) for x in row] for row in tok.value])
    return "\\operatorname{" + tok.name + "}"


def _tex_function(tree: Tree, texargs: list[str], settings: Settings) -> str:
    name = tree.token.name
    args = tree.args
    lname = name.lower()

    if lname == "sqrt" and len(texargs) == 1:
        return "\\sqrt{ " + texargs[0] + " }"
    if lname == "root" and len(texargs) == 2:
        return "\\sqrt[" + texargs[1] + "]{ " + texargs[0] + " }"
    if lname in ("abs", "len", "length") and len(texargs) == 1:
        return "\\left | " + texargs[0] + " \\right |"
    if lname == "exp" and len(texargs) == 1:
        return "e^{ " + texargs[0] + " }"
    if lname == "ln" and len(texargs) == 1:
        return "\\ln " + _tex_brackets(texargs[0])
    if lname == "log" and len(texargs) == 1:
        return "\\log_{10} " + _tex_brackets(texargs[0])
    if lname == "fact" and len(texargs) == 1:
        text = texargs[0]
        if args[0].token.type in ("op", "function") or (args[0].token.type == "number" and text.startswith("-")):
            text = _tex_brackets(text)
        return text + "!"
    if lname == "ceil" and len(texargs) == 1:
        return "\\left \\lceil " + texargs[0] + " \\right \\rceil"
    if lname == "floor" and len(texargs) == 1:
        return "\\left \\lfloor " + texargs[0] + " \\right \\rfloor"
    if lname == "conj" and len(texargs) == 1:
        return "\\overline{ " + texargs[0] + " }"
    if lname == "re" and len(texargs) == 1:
        return "\\Re " + _tex_brackets(texargs[0])
    if lname == "im" and len(texargs) == 1:
        return "\\Im " + _tex_brackets(texargs[0])
    if lname == "transpose" and len(texargs) == 1:
        return "{ " + texargs[0] + " }^{\\mathrm{T}}"
    if lname == "comb" and len(texargs) == 2:
        return "\\binom{ " + texargs[0] + " }{ " + texargs[1] + " }"
    if lname == "listval" and len(texargs) == 2:
        return "{ " + texargs[0] + " }_{ " + texargs[1] + " }"
    if lname == "dot" and len(texargs) == 2:
        return texargs[0] + " \\cdot " + texargs[1]
    if lname == "cross" and len(texargs) == 2:
        return texargs[0] + " \\times " + texargs[1]
    if lname == "vector":
        return _tex_vector(texargs, settings)
    if lname == "matrix" and all(a.token.type == "list" and a.args is not None for a in args):
        return _tex_matrix([[texify(c, settings) for c in row.args] for row in args])
    if lname == "set":
        return "\\left\\{ " + ", ".join(texargs) + " \\right\\}"
    if lname == "cosec":
        return "\\csc " + _tex_brackets(", ".join(texargs))
    if lname in TEX_NAMED_FUNCTIONS:
        return "\\" + lname + " " + _tex_brackets(", ".join(texargs))
    return "\\operatorname{" + name.replace("_", "\\_") + "} " + _tex_brackets(", ".join(texargs))


def _jme_operands(tree: Tree, settings: Settings) -> list[str]:
    bits = [tree_to_jme(a, settings) for a in tree.args]
    return ["(" + b + ")" if needs_brackets(tree, i, settings) else b for i, b in enumerate(bits)]


def _tex_op(tree: Tree, texargs: list[str], settings: Settings) -> str:
    tok = tree.token
    name = tok.name
    args = tree.args

    if name == "/":
        return "\\frac{ " + texargs[0] + " }{ " + texargs[1] + " }"

    if name == "^":
        base = texargs[0]
        if needs_brackets(tree, 0, settings) or args[0].token.type == "function" and args[0].token.name in TEX_NAMED_FUNCTIONS:
            base = _tex_brackets(base)
        return "{ " + base + " }^{ " + texargs[1] + " }"

    bits = list(texargs)
    for i in range(len(args)):
        if needs_brackets(tree, i, settings):
            bits[i] = _tex_brackets(bits[i])

    if len(args) == 1:
        if name == "fact":
            return bits[0] + "!"
        return TEX_PREFIX.get(name, name + " ") + bits[0]

    if name == "*":
        a, b = args
        if a.token.type == "number" and b.token.type == "number":
            sep = " \\times "
        elif _elide_times(tree, *_jme_operands(tree, settings)):
            sep = " "
        else:
            sep = " \\times "
        return bits[0] + sep + bits[1]

    return TEX_OPS.get(name, " " + name + " ").join(bits)


def texify(tree: Optional[Tree], settings: Settings = None) -> str:
    """Render an expression tree as TeX.

    Parameters
    ----------
    tree : Tree or None
        The expression.
    settings : dict or None
        ``fractionnumbers`` writes non-integers as ``\\frac``; ``rowvector``
        lays vectors out horizontally.

    Returns
    -------
    str
        TeX source (without surrounding math delimiters).

    Examples
    --------
    >>> from parser import compile
    >>> texify(compile("x^2/2"))
    '\\\\frac{ { x }^{ 2 } }{ 2 }'
    >>> texify(compile("sqrt(alpha)"))
    '\\\\sqrt{ \\\\alpha }'
    """
    if tree is None:
        return ""
    settings = settings or {}
    tok = tree.token
    if tree.args is None:
        return tex_token(tok, settings)
    texargs = [texify(a, settings) for a in tree.args]
    if tok.type == "list":
        return "\\left[ " + ", ".join(texargs) + " \\right]"
    if tok.type == "function":
        return _tex_function(tree, texargs, settings)
    if tok.type == "op":
        return _tex_op(tree, texargs, settings)
    return tex_token(tok, settings)
