from lexer import tokenise
from errors import ParseError
from utils.ast_utils import TFunc, TList, TName, TOp, Tree
from utils.parser_utils import FUNCTION_SYNONYMS, RIGHT_ASSOCIATIVE, precedence


# PARSER
# Shunting-yard: operators wait on ``stack`` until an operator that binds
# more loosely arrives; finished subtrees collect on ``output``.


def _reinterpret_variables(tokens, scope):
    """A function token naming a variable of *scope* that is not also a
    function is a multiplication, e.g. ``x(x+1)`` when ``x`` is bound."""
    if scope is None:
        return tokens
    out = []
    for tok in tokens:
        if tok.type == "function":
            name = tok.name.lower()
            if scope.get_variable(name) is not None and not scope.get_functions(name):
                out.extend([TName(tok.name), TOp("*")])
                continue
        out.append(tok)
    return out


def shunt(tokens, scope=None):
    """Arrange a token sequence into an expression tree.

    Parameters
    ----------
    tokens : list[Token]
        Output of :func:`lexer.tokenise`.
    scope : Scope or None
        Used only to tell a bound variable followed by a bracket apart from
        a function application.

    Returns
    -------
    Tree
        The root of the expression tree.

    Raises
    ------
    ParseError
        On mismatched brackets, an operator without enough operands, or two
        expressions with no operator between them.

    Examples
    --------
    >>> t = shunt(tokenise("2+3*4"))
    >>> t.token.name, t.args[1].token.name
    ('+', '*')
    """
    tokens = _reinterpret_variables(tokens, scope)
    output = []
    stack = []
    numvars = []    # argument counts of open function calls and lists
    olength = []    # output length when each call or list opened
    listmode = []   # "new" for list literals, "index" for subscripts

    def addoutput(tok, nargs=None):
        if nargs is None:
            output.append(Tree(tok))
            return
        if len(output) < nargs:
            raise ParseError("jme.shunt.not enough args", getattr(tok, "name", tok.type))
        args = output[len(output) - nargs:]
        del output[len(output) - nargs:]
        output.append(Tree(tok, args))

    def pop_operator():
        tok = stack.pop()
        addoutput(tok, tok.arity)

    def top_is(*kinds):
        return bool(stack) and stack[-1].type == "punc" and stack[-1].kind in kinds

    for i, tok in enumerate(tokens):
        kind = tok.kind if tok.type == "punc" else tok.type

        if kind in ("number", "string", "boolean", "name"):
            addoutput(tok)

        elif kind == "function":
            stack.append(tok)
            numvars.append(0)
            olength.append(len(output))

        elif kind == ",":
            while stack and not top_is("(", "["):
                pop_operator()
            in_call = top_is("(") and len(stack) > 1 and stack[-2].type == "function"
            if not (in_call or top_is("[")):
                raise ParseError("jme.shunt.no left bracket in function")
            numvars[-1] += 1

        elif kind == "op":
            if not tok.prefix:
                o1 = precedence(tok.name)
                while stack and stack[-1].type == "op":
                    o2 = precedence(stack[-1].name)
                    if o1 > o2 or (o1 == o2 and tok.name not in RIGHT_ASSOCIATIVE):
                        pop_operator()
                    else:
                        break
            stack.append(tok)

        elif kind == "[":
            prev = tokens[i - 1] if i > 0 else None
            if prev is None or prev.type == "op" or (prev.type == "punc" and prev.kind in ("(", "[", ",")):
                listmode.append("new")
            else:
                listmode.append("index")
            stack.append(tok)
            numvars.append(0)
            olength.append(len(output))

        elif kind == "]":
            while stack and not top_is("["):
                pop_operator()
            if not stack:
                raise ParseError("jme.shunt.no left square bracket")
            stack.pop()
            n = numvars.pop()
            if len(output) > olength.pop():
                n += 1
            if listmode.pop() == "new":
                addoutput(TList(vars=n), n)
            else:
                if n != 1:
                    raise ParseError("jme.shunt.list index arity", n)
                addoutput(TFunc("listval", 2), 2)

        elif kind == "(":
            stack.append(tok)

        elif kind == ")":
            while stack and not top_is("("):
                pop_operator()
            if not stack:
                raise ParseError("jme.shunt.no left bracket")
            stack.pop()
            if stack and stack[-1].type == "function":
                n = numvars.pop()
                if len(output) > olength.pop():
                    n += 1
                f = stack.pop()
                name = FUNCTION_SYNONYMS.get(f.name.lower(), f.name)
                addoutput(TFunc(name, n), n)

    while stack:
        tok = stack[-1]
        if tok.type == "punc" and tok.kind == "(":
            raise ParseError("jme.shunt.no right bracket")
        if tok.type == "punc" and tok.kind == "[":
            raise ParseError("jme.shunt.no right square bracket")
        if tok.type == "function":
            raise ParseError("jme.shunt.no right bracket")
        pop_operator()

    if listmode:
        raise ParseError("jme.shunt.no right square bracket")
    if len(output) > 1:
        raise ParseError("jme.shunt.missing operator")
    return output[0] if output else None


def compile(source, scope=None):
    """Tokenise and parse *source*.

    Returns ``None`` for an empty or whitespace-only expression.

    Examples
    --------
    >>> compile("   ") is None
    True
    >>> compile("f(x, 2)").token
    TFunc('f', 2)
    """
    source = str(source).strip()
    if not source:
        return None
    return shunt(tokenise(source), scope)
