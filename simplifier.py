from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from display import texify, tree_to_jme
from errors import BindingError, JMEError, ParseError, ResourceError
from parser import compile
from runtime import Scope, evaluate
from utils.ast_utils import TBool, TNum, TOp, Tree, is_function, is_op, iter_subtrees, trees_equal, tokens_equal
from utils.parser_utils import COMMUTATIVE

logger = logging.getLogger(__name__)

# Flags a ruleset can switch on or off, changing how results are displayed.
DISPLAY_FLAGS = ("fractionnumbers", "rowvector")

# What leftover operands of a commutative operator are rebuilt as when there
# are none.
IDENTITY = {
    "+": TNum(0),
    "*": TNum(1),
    "and": TBool(True),
    "or": TBool(False),
}

MAX_STEPS = 1000

Captures = dict[str, Tree]


# ----------------------
# Patterns
# ----------------------

class Pattern:
    """A node of a compiled pattern.

    ``match`` returns the captures extended with whatever this node binds,
    or ``None`` when *tree* does not match.  *captures* is never modified.
    """

    def match(self, tree: Tree, captures: Captures, commute: bool) -> Optional[Captures]:
        raise NotImplementedError

    def names(self) -> set[str]:
        return set()

    def literal_names(self) -> set[str]:
        return set()


class AnythingPattern(Pattern):
    """``?``: any single subtree."""

    def match(self, tree, captures, commute):
        return captures

    def __repr__(self):
        return "?"


class ZeroOrMorePattern(AnythingPattern):
    """``??``: as the last operand of a commutative operator, absorbs every
    operand left over; elsewhere the same as ``?``."""

    def __repr__(self):
        return "??"


class CapturePattern(Pattern):
    """``pattern;name``: records the matched subtree under ``name``.  A name
    captured twice must match equal subtrees."""

    def __init__(self, pattern: Pattern, name: str) -> None:
        self.pattern = pattern
        self.name = name

    def match(self, tree, captures, commute):
        result = self.pattern.match(tree, captures, commute)
        if result is None:
            return None
        return bind(result, self.name, tree)

    def names(self):
        return self.pattern.names() | {self.name}

    def literal_names(self):
        return self.pattern.literal_names()

    def __repr__(self):
        return f"{self.pattern!r};{self.name}"


class NumberPattern(Pattern):
    """``$n`` or ``m_number``: a number literal."""

    def match(self, tree, captures, commute):
        return captures if tree.token.type == "number" else None


class TypePattern(Pattern):
    """``m_type(kind)`` (and ``$v`` for names): a leaf of the given token type."""

    def __init__(self, kind: str) -> None:
        self.kind = kind

    def match(self, tree, captures, commute):
        return captures if tree.token.type == self.kind else None


class AnyOfPattern(Pattern):
    """``m_any(p1, p2, ...)``: the first alternative that matches."""

    def __init__(self, options: Sequence[Pattern]) -> None:
        self.options = list(options)

    def match(self, tree, captures, commute):
        for option in self.options:
            result = option.match(tree, captures, commute)
            if result is not None:
                return result
        return None

    def names(self):
        return set().union(*(o.names() for o in self.options))

    def literal_names(self):
        return set().union(*(o.literal_names() for o in self.options))


class AllOfPattern(AnyOfPattern):
    """``m_all(...)``/``m_and(...)``: every pattern must match."""

    def match(self, tree, captures, commute):
        for option in self.options:
            captures = option.match(tree, captures, commute)
            if captures is None:
                return None
        return captures


class NotPattern(Pattern):
    """``m_not(p)``: matches when ``p`` doesn't.  Captures nothing."""

    def __init__(self, pattern: Pattern) -> None:
        self.pattern = pattern

    def match(self, tree, captures, commute):
        return captures if self.pattern.match(tree, captures, commute) is None else None


class CommutePattern(Pattern):
    """``m_commute(p)``: match ``p`` with the operands of commutative
    operators in any order."""

    def __init__(self, pattern: Pattern) -> None:
        self.pattern = pattern

    def match(self, tree, captures, commute):
        return self.pattern.match(tree, captures, True)

    def names(self):
        return self.pattern.names()

    def literal_names(self):
        return self.pattern.literal_names()


class LiteralPattern(Pattern):
    """A leaf that must equal the token in the pattern, e.g. ``0`` or ``x``."""

    def __init__(self, tree: Tree) -> None:
        self.token = tree.token

    def match(self, tree, captures, commute):
        if tree.args:
            return None
        return captures if tokens_equal(self.token, tree.token) else None

    def literal_names(self):
        return {self.token.key} if self.token.type == "name" else set()

    def __repr__(self):
        return tree_to_jme(Tree(self.token))


class ApplicationPattern(Pattern):
    """An op, function or list with the same name and a pattern for each
    argument."""

    def __init__(self, token: Any, args: Sequence[Pattern]) -> None:
        self.token = token
        self.args = list(args)

    @property
    def op_name(self) -> Optional[str]:
        return self.token.name if self.token.type == "op" else None

    def match(self, tree, captures, commute):
        tok = tree.token
        if tok.type != self.token.type or tree.args is None:
            return None
        if tok.type in ("op", "function") and tok.name.lower() != self.token.name.lower():
            return None
        if commute and self.op_name in COMMUTATIVE and len(self.args) == 2:
            return self._match_commutative(tree, captures)
        if len(tree.args) != len(self.args):
            return None
        for pattern, arg in zip(self.args, tree.args):
            captures = pattern.match(arg, captures, commute)
            if captures is None:
                return None
        return captures

    def operands(self) -> list[Pattern]:
        """Operand patterns of a chain of this operator, flattened."""
        out = []
        for arg in self.args:
            if isinstance(arg, ApplicationPattern) and arg.op_name == self.op_name and len(arg.args) == 2:
                out.extend(arg.operands())
            else:
                out.append(arg)
        return out

    def _match_commutative(self, tree, captures):
        op = self.op_name
        terms = flatten(tree, op)
        patterns = self.operands()
        catchall = None
        last = patterns[-1]
        if isinstance(last, ZeroOrMorePattern) or (
                isinstance(last, CapturePattern) and isinstance(last.pattern, ZeroOrMorePattern)):
            catchall = patterns.pop()
        if len(patterns) > len(terms):
            return None

        def assign(i, used, captures):
            if i == len(patterns):
                leftover = [t for j, t in enumerate(terms) if j not in used]
                if catchall is None:
                    return captures if not leftover else None
                if leftover:
                    rest = rebuild(leftover, op)
                elif op in IDENTITY:
                    rest = Tree(IDENTITY[op])
                else:
                    return None
                return catchall.match(rest, captures, True)
            for j, term in enumerate(terms):
                if j in used:
                    continue
                result = patterns[i].match(term, captures, True)
                if result is not None:
                    result = assign(i + 1, used | {j}, result)
                    if result is not None:
                        return result
            return None

        return assign(0, frozenset(), captures)

    def names(self):
        return set().union(*(a.names() for a in self.args)) if self.args else set()

    def literal_names(self):
        return set().union(*(a.literal_names() for a in self.args)) if self.args else set()

    def __repr__(self):
        return f"{self.token.name}({', '.join(map(repr, self.args))})" if self.token.type != "list" else repr(self.args)


def bind(captures: Captures, name: str, tree: Tree) -> Optional[Captures]:
    if name in captures and not trees_equal(captures[name], tree):
        return None
    result = dict(captures)
    result[name] = tree
    return result


def flatten(tree: Tree, op: str) -> list[Tree]:
    """Operands of a chain of the binary operator *op*, e.g. the four terms
    of ``a+(b+c)+d``."""
    if is_op(tree, op) and len(tree.args) == 2:
        return flatten(tree.args[0], op) + flatten(tree.args[1], op)
    return [tree]


def rebuild(terms: Sequence[Tree], op: str) -> Tree:
    result = terms[0]
    for term in terms[1:]:
        result = Tree(TOp(op), [result, term])
    return result


def compile_pattern(pattern: Union[str, Tree, Pattern]) -> Pattern:
    """Compile pattern source into pattern nodes.

    Parameters
    ----------
    pattern : str, Tree or Pattern
        Pattern source such as ``"?;x * (?;y + ?;z)"``.

    Returns
    -------
    Pattern

    Raises
    ------
    ParseError
        If a capture name is not a name, or ``m_type`` has no type.

    Examples
    --------
    >>> p = compile_pattern("m_any(1, ?;x^0)")
    >>> sorted(p.names())
    ['x']
    """
    if isinstance(pattern, Pattern):
        return pattern
    tree = compile(pattern) if isinstance(pattern, str) else pattern
    tok = tree.token

    if tree.args is None:
        if tok.type == "name":
            if tok.name == "?":
                return AnythingPattern()
            if tok.name == "??":
                return ZeroOrMorePattern()
            if tok.name == "$n":
                return NumberPattern()
            if tok.name == "$v":
                return TypePattern("name")
        return LiteralPattern(tree)

    if is_op(tree, ";"):
        target = tree.args[1]
        if target.token.type != "name":
            raise ParseError("jme.pattern.bad capture", target.token.type)
        return CapturePattern(compile_pattern(tree.args[0]), target.token.key)

    if tok.type == "function":
        name = tok.name.lower()
        args = tree.args
        if name == "m_any":
            return AnyOfPattern([compile_pattern(a) for a in args])
        if name in ("m_all", "m_and"):
            return AllOfPattern([compile_pattern(a) for a in args])
        if name == "m_not" and len(args) == 1:
            return NotPattern(compile_pattern(args[0]))
        if name == "m_number" and not args:
            return NumberPattern()
        if name == "m_type":
            if len(args) != 1 or args[0].token.type not in ("name", "string"):
                raise ParseError("jme.pattern.m_type")
            kind = args[0].token.name if args[0].token.type == "name" else args[0].token.value
            return TypePattern(kind)
        if name == "m_commute" and len(args) == 1:
            return CommutePattern(compile_pattern(args[0]))

    return ApplicationPattern(tok, [compile_pattern(a) for a in tree.args])


def match_tree(pattern: Union[str, Tree, Pattern], tree: Tree, allow_commute: bool = False) -> Optional[Captures]:
    """Match *tree* against *pattern*.

    Parameters
    ----------
    pattern : str, Tree or Pattern
        The pattern.
    tree : Tree
        The expression to match.
    allow_commute : bool
        Let the operands of ``+ * and or =`` match in any order everywhere,
        not only inside ``m_commute``.

    Returns
    -------
    dict[str, Tree] or None
        The captured subtrees by name, or ``None`` if there is no match.

    Examples
    --------
    >>> m = match_tree("?;a + ?;b", compile("x + 2"))
    >>> tree_to_jme(m["a"]), tree_to_jme(m["b"])
    ('x', '2')
    >>> match_tree("2 + ?;a", compile("x + 2")) is None
    True
    >>> tree_to_jme(match_tree("2 + ?;a", compile("x + 2"), allow_commute=True)["a"])
    'x'
    """
    return compile_pattern(pattern).match(tree, {}, allow_commute)


# ----------------------
# Rules
# ----------------------

def substitute_captures(tree: Tree, captures: Mapping[str, Tree]) -> Tree:
    if tree.args is None:
        if tree.token.type == "name" and tree.token.key in captures:
            return captures[tree.token.key]
        return tree
    return Tree(tree.token, [substitute_captures(a, captures) for a in tree.args])


def _run_eval(tree: Tree, scope: Scope) -> Tree:
    """Replace each ``eval(expr)`` in *tree* by the value of ``expr``."""
    if tree.args is None:
        return tree
    if is_function(tree, "eval") and len(tree.args) == 1:
        return Tree(evaluate(tree.args[0], scope))
    return Tree(tree.token, [_run_eval(a, scope) for a in tree.args])


class Rule:
    """A rewrite rule: trees matching ``pattern`` for which every condition
    is true are replaced by ``result``.

    Parameters
    ----------
    pattern : str, Tree or Pattern
        What to match.
    conditions : sequence of str or Tree
        Expressions in the captured names that must all be ``true``.
    result : str or Tree
        The replacement, in terms of the captured names.  ``eval(expr)``
        is replaced by the value of ``expr``.
    name : str or None
        Shown in debug logging.

    Raises
    ------
    ParseError
        ``jme.rules.no result`` if ``result`` is missing or empty.
    BindingError
        ``jme.rules.unbound replacement name`` if ``result`` uses a name the
        pattern neither captures nor contains.

    Examples
    --------
    >>> from library import builtin_scope
    >>> rule = Rule("?;x*1", [], "x")
    >>> tree_to_jme(rule.apply(compile("(a+b)*1"), builtin_scope))
    'a + b'
    """

    def __init__(
        self,
        pattern: Union[str, Tree, Pattern],
        conditions: Sequence[Union[str, Tree]] = (),
        result: Union[str, Tree, None] = None,
        name: Optional[str] = None,
    ) -> None:
        self.source = pattern if isinstance(pattern, str) else None
        self.pattern = compile_pattern(pattern)
        self.conditions = [compile(c) if isinstance(c, str) else c for c in conditions]
        self.result = compile(result) if isinstance(result, str) else result
        self.name = name or self.source or repr(self.pattern)
        if self.result is None:
            raise ParseError("jme.rules.no result", self.name)

        allowed = self.pattern.names() | self.pattern.literal_names()
        for node in iter_subtrees(self.result):
            if node.token.type == "name" and node.token.key not in allowed:
                raise BindingError("jme.rules.unbound replacement name", node.token.name, self.name)

    def match(self, tree: Tree, scope: Scope) -> Optional[Captures]:
        captures = self.pattern.match(tree, {}, False)
        if captures is None:
            return None
        if self.conditions and not self.check_conditions(captures, scope):
            return None
        return captures

    def check_conditions(self, captures: Captures, scope: Scope) -> bool:
        condition_scope = _condition_scope(scope)
        for condition in self.conditions:
            try:
                result = evaluate(substitute_captures(condition, captures), condition_scope)
            except JMEError as e:
                logger.debug("rule %s: condition %s failed: %s", self.name, tree_to_jme(condition), e)
                return False
            if result is None or result.type != "boolean" or not result.value:
                return False
        return True

    def apply(self, tree: Tree, scope: Scope) -> Optional[Tree]:
        """The rewritten tree, or ``None`` if the rule doesn't apply."""
        captures = self.match(tree, scope)
        if captures is None:
            return None
        replaced = substitute_captures(self.result, captures)
        try:
            return _run_eval(replaced, _condition_scope(scope))
        except JMEError as e:
            logger.debug("rule %s: eval failed: %s", self.name, e)
            return None

    def __repr__(self) -> str:
        return f"<Rule {self.name}>"


def _condition_scope(scope: Scope) -> Scope:
    # names in conditions refer to captured subtrees, never to variables
    child = Scope([scope])
    child.variables.clear()
    return child


class Ruleset:
    """An ordered collection of rules with display flags."""

    def __init__(self, rules: Iterable[Rule] = (), flags: Optional[Mapping[str, bool]] = None) -> None:
        self.rules: list[Rule] = []
        for rule in rules:
            if rule not in self.rules:
                self.rules.append(rule)
        self.flags = {flag: False for flag in DISPLAY_FLAGS}
        self.flags.update(flags or {})

    def __len__(self) -> int:
        return len(self.rules)

    def __repr__(self) -> str:
        return f"<Ruleset of {len(self.rules)} rules>"


def _lookup(sets: Mapping[str, Any], name: str) -> Any:
    if name in sets:
        return sets[name]
    lname = name.lower()
    for key, value in sets.items():
        if key.lower() == lname:
            return value
    raise BindingError("jme.display.collectRuleset.set not defined", name)


def collect_ruleset(spec: Union[str, Ruleset, Sequence[Any], None], sets: Optional[Mapping[str, Any]]) -> Ruleset:
    """Build a ruleset from a list of ruleset names.

    Parameters
    ----------
    spec : str, Ruleset or sequence
        A comma-separated string or a list.  Entries are ruleset names
        (``"!name"`` removes that set's rules again), display flag names
        (``"fractionnumbers"``, ``"!rowvector"``), rules or rulesets.
    sets : mapping
        Named rulesets.  A value may itself be a spec naming other sets.

    Returns
    -------
    Ruleset

    Raises
    ------
    BindingError
        If a name is neither a ruleset nor a display flag.

    Examples
    --------
    >>> r = collect_ruleset("all, !collectNumbers, fractionnumbers", BUILTIN_RULESETS)
    >>> r.flags["fractionnumbers"]
    True
    """
    if isinstance(spec, Ruleset):
        return spec
    if sets is None:
        raise BindingError("jme.display.collectRuleset.no sets")
    if spec is None:
        items: list[Any] = []
    elif isinstance(spec, str):
        items = [s.strip() for s in spec.split(",") if s.strip()]
    else:
        items = list(spec)

    rules: list[Rule] = []
    flags: dict[str, bool] = {}
    for item in items:
        if isinstance(item, Rule):
            rules.append(item)
            continue
        if isinstance(item, Ruleset):
            rules.extend(item.rules)
            continue
        exclude = item.startswith("!")
        name = item[1:].strip() if exclude else item
        if name.lower() in DISPLAY_FLAGS:
            flags[name.lower()] = not exclude
            continue
        sub = collect_ruleset(_lookup(sets, name), sets)
        if exclude:
            rules = [r for r in rules if r not in sub.rules]
        else:
            rules.extend(sub.rules)
            for flag, value in sub.flags.items():
                if value:
                    flags[flag] = True
    return Ruleset(rules, flags)


def simplify(tree: Optional[Tree], ruleset: Union[str, Ruleset, Sequence[Any]], scope: Scope,
             max_steps: int = MAX_STEPS) -> Optional[Tree]:
    """Rewrite *tree* with the rules of *ruleset* until none applies.

    Children are simplified before their parent.  After a rule fires at a
    node the node is simplified again from its children up.

    Parameters
    ----------
    tree : Tree or None
        The expression.
    ruleset : str, Ruleset or sequence
        The rules, or names of rulesets in ``scope``.
    scope : Scope
        Used to evaluate rule conditions and ``eval``, and to look up
        ruleset names.
    max_steps : int
        Number of rewrites after which to give up.

    Returns
    -------
    Tree or None

    Raises
    ------
    ResourceError
        ``jme.display.simplify.too many steps`` if the rules don't settle.

    Examples
    --------
    >>> from library import builtin_scope
    >>> tree_to_jme(simplify(compile("1*x + 0"), "unitFactor, zeroTerm", builtin_scope))
    'x'
    """
    if tree is None:
        return None
    ruleset = collect_ruleset(ruleset, scope.rulesets)
    steps = 0

    def visit(node: Tree) -> Tree:
        nonlocal steps
        while True:
            if node.args:
                node = Tree(node.token, [visit(a) for a in node.args])
            for rule in ruleset.rules:
                result = rule.apply(node, scope)
                if result is not None:
                    steps += 1
                    if steps > max_steps:
                        raise ResourceError("jme.display.simplify.too many steps", max_steps)
                    logger.debug("%s: %s -> %s", rule.name, tree_to_jme(node), tree_to_jme(result))
                    node = result
                    break
            else:
                return node

    return visit(tree)


def simplify_expression(source: str, ruleset: Union[str, Ruleset, Sequence[Any]], scope: Scope) -> str:
    """Compile, simplify and write back out as JME.

    Examples
    --------
    >>> from library import builtin_scope
    >>> simplify_expression("x + 1 + 2", "all", builtin_scope)
    'x + 3'
    """
    ruleset = collect_ruleset(ruleset, scope.rulesets)
    return tree_to_jme(simplify(compile(source, scope), ruleset, scope), ruleset.flags)


def expr_to_latex(expr: Union[str, Tree], ruleset: Union[str, Ruleset, Sequence[Any]], scope: Scope) -> str:
    """Simplify an expression and render it as TeX.

    Examples
    --------
    >>> from library import builtin_scope
    >>> expr_to_latex("x^1/2", "all", builtin_scope)
    '\\\\frac{ x }{ 2 }'
    """
    ruleset = collect_ruleset(ruleset, scope.rulesets)
    tree = compile(expr, scope) if isinstance(expr, str) else expr
    return texify(simplify(tree, ruleset, scope), ruleset.flags)


# ----------------------
# Builtin rulesets
# ----------------------

_RULES: dict[str, list[tuple[str, list[str], str]]] = {
    "basic": [
        ("+(?;x)", [], "x"),
        ("?;x+(-?;y)", [], "x-y"),
        ("?;x+?;y", ["y<0"], "x-eval(-y)"),
        ("?;x-?;y", ["y<0"], "x+eval(-y)"),
        ("?;x-(-?;y)", [], "x+y"),
        ("-(-?;x)", [], "x"),
        ("-?;x", ['x isa "complex"', "re(x)<0"], "eval(-x)"),
        ("?;x+?;y", ['x isa "number"', 'y isa "complex"', "re(y)=0"], "eval(x+y)"),
        ("-?;x+?;y", ['x isa "number"', 'y isa "complex"', "re(y)=0"], "-eval(x-y)"),
        ("(-?;x)/?;y", [], "-(x/y)"),
        ("?;x/(-?;y)", [], "-(x/y)"),
        ("(-?;x)*?;y", [], "-(x*y)"),
        ("?;x*(-?;y)", [], "-(x*y)"),
        ("?;x+(?;y+?;z)", [], "(x+y)+z"),
        ("?;x-(?;y+?;z)", [], "(x-y)-z"),
        ("?;x+(?;y-?;z)", [], "(x+y)-z"),
        ("?;x-(?;y-?;z)", [], "(x-y)+z"),
        ("(?;x*?;y)*?;z", [], "x*(y*z)"),
        ("?;n*i", ['n isa "number"'], "eval(n*i)"),
        ("i*?;n", ['n isa "number"'], "eval(n*i)"),
    ],
    "unitFactor": [
        ("1*?;x", [], "x"),
        ("?;x*1", [], "x"),
    ],
    "unitPower": [
        ("?;x^1", [], "x"),
    ],
    "unitDenominator": [
        ("?;x/1", [], "x"),
    ],
    "zeroFactor": [
        ("?;x*0", [], "0"),
        ("0*?;x", [], "0"),
        ("0/?;x", [], "0"),
    ],
    "zeroTerm": [
        ("0+?;x", [], "x"),
        ("?;x+0", [], "x"),
        ("?;x-0", [], "x"),
        ("0-?;x", [], "-x"),
    ],
    "zeroPower": [
        ("?;x^0", [], "1"),
    ],
    "noLeadingMinus": [
        ("-?;x+?;y", [], "y-x"),
        ("-0", [], "0"),
    ],
    "collectNumbers": [
        ("-?;x-?;y", ['x isa "number"', 'y isa "number"'], "-(x+y)"),
        ("?;n+?;m", ['n isa "number"', 'm isa "number"'], "eval(n+m)"),
        ("?;n-?;m", ['n isa "number"', 'm isa "number"'], "eval(n-m)"),
        ("?;n+?;x", ['n isa "number"', 'not (x isa "number")'], "x+n"),
        ("(?;x+?;n)+?;m", ['n isa "number"', 'm isa "number"'], "x+eval(n+m)"),
        ("(?;x-?;n)+?;m", ['n isa "number"', 'm isa "number"'], "x+eval(m-n)"),
        ("(?;x+?;n)-?;m", ['n isa "number"', 'm isa "number"'], "x+eval(n-m)"),
        ("(?;x-?;n)-?;m", ['n isa "number"', 'm isa "number"'], "x-eval(n+m)"),
        ("(?;x+?;n)+?;y", ['n isa "number"', 'not (y isa "number")'], "(x+y)+n"),
        ("(?;x+?;n)-?;y", ['n isa "number"', 'not (y isa "number")'], "(x-y)+n"),
        ("(?;x-?;n)+?;y", ['n isa "number"', 'not (y isa "number")'], "(x+y)-n"),
        ("(?;x-?;n)-?;y", ['n isa "number"', 'not (y isa "number")'], "(x-y)-n"),
        ("?;n*?;m", ['n isa "number"', 'm isa "number"'], "eval(n*m)"),
        ("?;x*?;n", ['n isa "number"', 'not (x isa "number")', "n<>i"], "n*x"),
        ("?;m*(?;n*?;x)", ['m isa "number"', 'n isa "number"'], "eval(n*m)*x"),
    ],
    "simplifyFractions": [
        ("?;n/?;m", ['n isa "number"', 'm isa "number"', "gcd_without_pi_or_i(n,m)>1"],
         "eval(n/gcd_without_pi_or_i(n,m))/eval(m/gcd_without_pi_or_i(n,m))"),
        ("(?;n*?;x)/?;m", ['n isa "number"', 'm isa "number"', "gcd_without_pi_or_i(n,m)>1"],
         "(eval(n/gcd(n,m))*x)/eval(m/gcd(n,m))"),
        ("?;n/(?;m*?;x)", ['n isa "number"', 'm isa "number"', "gcd_without_pi_or_i(n,m)>1"],
         "eval(n/gcd(n,m))/(eval(m/gcd(n,m))*x)"),
        ("(?;n*?;x)/(?;m*?;y)", ['n isa "number"', 'm isa "number"', "gcd_without_pi_or_i(n,m)>1"],
         "(eval(n/gcd(n,m))*x)/(eval(m/gcd(n,m))*y)"),
    ],
    "zeroBase": [
        ("0^?;x", [], "0"),
    ],
    "constantsFirst": [
        ("?;x*?;n", ['n isa "number"', 'not (x isa "number")', "n<>i"], "n*x"),
        ("?;x*(?;n*?;y)", ['n isa "number"', "n<>i", 'not (x isa "number")'], "n*(x*y)"),
    ],
    "sqrtProduct": [
        ("sqrt(?;x)*sqrt(?;y)", [], "sqrt(x*y)"),
    ],
    "sqrtDivision": [
        ("sqrt(?;x)/sqrt(?;y)", [], "sqrt(x/y)"),
    ],
    "sqrtSquare": [
        ("sqrt(?;x^2)", [], "x"),
        ("sqrt(?;x)^2", [], "x"),
        ("sqrt(?;n)", ['n isa "number"', "isint(sqrt(n))"], "eval(sqrt(n))"),
    ],
    "trig": [
        ("sin(?;n)", ['n isa "number"', "isint(2*n/pi)"], "eval(sin(n))"),
        ("cos(?;n)", ['n isa "number"', "isint(2*n/pi)"], "eval(cos(n))"),
        ("tan(?;n)", ['n isa "number"', "isint(n/pi)"], "0"),
        ("cosh(0)", [], "1"),
        ("sinh(0)", [], "0"),
        ("tanh(0)", [], "0"),
    ],
    "otherNumbers": [
        ("?;n^?;m", ['n isa "number"', 'm isa "number"'], "eval(n^m)"),
    ],
}


def build_builtin_rulesets() -> dict[str, Ruleset]:
    """Compile the builtin rulesets, plus ``all`` holding every rule."""
    sets = {
        name: Ruleset([Rule(p, c, r, name=f"{name}: {p}") for p, c, r in rules])
        for name, rules in _RULES.items()
    }
    sets["all"] = Ruleset([rule for ruleset in sets.values() for rule in ruleset.rules])
    return sets


BUILTIN_RULESETS = build_builtin_rulesets()
