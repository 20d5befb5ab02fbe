import ply.lex as lex

from errors import LexicalError
from utils.ast_utils import TBool, TFunc, TName, TNum, TOp, TPunc, TString
from utils.parser_utils import ARITY, BUILTIN_CONSTANTS, OP_SYNONYMS, POSTFIX_FORM, PREFIX_FORM

tokens = (
    "NUMBER", "STRING", "BOOLEAN", "NAME", "OP",
    "LPAREN", "RPAREN",
    "LBRACKET", "RBRACKET",
    "COMMA",
)

t_LPAREN   = r"\("
t_RPAREN   = r"\)"
t_LBRACKET = r"\["
t_RBRACKET = r"\]"
t_COMMA    = r","

t_ignore = " \t\r\n"

# Rules are tried in definition order, so word operators and booleans must
# come before names.  Patterns are compiled with re.VERBOSE: no literal
# spaces, and ``#`` is escaped.

def t_COMMENT(t):
    r"//[^\n]*"
    pass  # Ignore comments

def t_NUMBER(t):
    r"[0-9]+(?:\.[0-9]+)?"
    t.value = float(t.value)
    return t

def t_STRING(t):
    r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'"
    t.value = unescape(t.value[1:-1])
    return t

def t_BOOLEAN(t):
    r"(?i:true|false)(?![a-zA-Z0-9_'])"
    t.value = t.value.lower() == "true"
    return t

def t_OP(t):
    r"(?i:not|and|or|xor|implies|isa|except|in|divides)(?![a-zA-Z0-9_'])|\.\.|\#|<=|>=|<>|&&|\|\||[|*+\-/^<>=!&;]"
    t.value = t.value.lower()
    return t

def t_NAME(t):
    r"(?:[a-zA-Z]+:)*(?:\$?[a-zA-Z_][a-zA-Z0-9_]*'*|\?\??)"
    return t

def t_error(t):
    raise LexicalError("jme.tokenise.invalid", t.value)

_raw_lexer = lex.lex()


def unescape(text):
    """Resolve backslash escapes in a string literal.

    ``\\n`` becomes a newline, ``\\{`` and ``\\}`` stay escaped so string
    interpolation can tell them from real brackets, and any other escaped
    character stands for itself.
    """
    out = []
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text):
            n = text[i + 1]
            if n == "n":
                out.append("\n")
            elif n in "{}":
                out.append("\\" + n)
            else:
                out.append(n)
            i += 2
        else:
            out.append(c)
            i += 1
    return "".join(out)


class JMELexer:
    """Wrapper lexer that turns raw ply tokens into expression tokens.

    It decides what the raw token stream can't: implicit multiplication,
    function application, prefix and postfix operator forms, and builtin
    constants.
    """

    def __init__(self, lexer):
        self.lexer = lexer
        self.raw = []        # raw tokens of the current input
        self.pos = 0         # index of the next raw token
        self.token_queue = []  # tokens waiting to be returned
        self.previous = None  # last token returned

    def input(self, data):
        self.lexer.input(data)
        self.raw = list(iter(self.lexer.token, None))
        self.pos = 0
        self.token_queue = []
        self.previous = None

    def __iter__(self):
        return iter(self.token, None)

    def _emit(self, *toks):
        self.token_queue.extend(toks)

    def _value_before(self, *kinds):
        prev = self.previous
        if prev is None:
            return False
        if prev.type == "punc":
            return prev.kind in kinds
        return prev.type in kinds

    def token(self):
        # Return queued tokens first
        if not self.token_queue:
            if self.pos >= len(self.raw):
                return None
            raw = self.raw[self.pos]
            self.pos += 1
            self._convert(raw)
        tok = self.token_queue.pop(0)
        self.previous = tok
        return tok

    def _convert(self, raw):
        if raw.type == "NUMBER":
            # ")3", "x 3" and "2 3" all mean multiplication
            if self._value_before(")", "number", "name"):
                self._emit(TOp("*"))
            self._emit(TNum(raw.value))

        elif raw.type == "STRING":
            self._emit(TString(raw.value))

        elif raw.type == "BOOLEAN":
            self._emit(TBool(raw.value))

        elif raw.type == "OP":
            self._emit(self._operator(raw.value))

        elif raw.type == "NAME":
            self._name(raw)

        elif raw.type == "LPAREN":
            if self._value_before(")", "number", "name"):
                self._emit(TOp("*"))
            self._emit(TPunc("("))

        else:
            kind = {"RPAREN": ")", "LBRACKET": "[", "RBRACKET": "]", "COMMA": ","}[raw.type]
            self._emit(TPunc(kind))

    def _operator(self, name):
        name = OP_SYNONYMS.get(name, name)
        prev = self.previous
        expects_value = (
            prev is None
            or (prev.type == "punc" and prev.kind in ("(", ",", "["))
            or (prev.type == "op" and not prev.postfix)
        )
        prefix = postfix = False
        if expects_value:
            if name in PREFIX_FORM:
                name = PREFIX_FORM[name]
                prefix = True
        elif name in POSTFIX_FORM:
            name = POSTFIX_FORM[name]
            postfix = True
        return TOp(name, ARITY.get(name, 2), prefix=prefix, postfix=postfix)

    def _name(self, raw):
        *annotation, name = raw.value.split(":")
        if self._value_before(")", "number", "name"):
            self._emit(TOp("*"))

        nxt = self.raw[self.pos] if self.pos < len(self.raw) else None
        immediately_applied = (
            nxt is not None and nxt.type == "LPAREN"
            and nxt.lexpos == raw.lexpos + len(raw.value)
        )
        if immediately_applied:
            self._emit(TFunc(name))
        elif name.lower() in BUILTIN_CONSTANTS:
            self._emit(TNum(BUILTIN_CONSTANTS[name.lower()]))
        else:
            self._emit(TName(name, annotation))


def tokenise(source):
    """Split an expression into tokens.

    Parameters
    ----------
    source : str
        JME source text.

    Returns
    -------
    list[Token]
        The token sequence, with implicit multiplications inserted and
        operators in their prefix/postfix forms.

    Raises
    ------
    LexicalError
        ``jme.tokenise.invalid`` naming the text that could not be read.

    Examples
    --------
    >>> tokenise("2x")
    [TNum(2.0), TOp('*'), TName('x')]
    >>> [t.name for t in tokenise("-x!") if t.type == "op"]
    ['-u', 'fact']
    """
    lexer = JMELexer(_raw_lexer.clone())
    lexer.input(source)
    return list(lexer)
