import argparse
import logging
import sys

from display import texify, token_to_jme, tree_to_jme
from errors import JMEError
from library import builtin_scope
from parser import compile
from runtime import evaluate
from simplifier import collect_ruleset, simplify
from utils.ast_utils import Tree
from utils.print_utils import format_tree, print_errors
from variables import make_variables

logger = logging.getLogger(__name__)


def _definition(text):
    name, sep, source = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected name=expression, got {text!r}")
    return name.strip(), source


def build_arg_parser():
    parser = argparse.ArgumentParser(
        prog="jme",
        description="Evaluate, simplify and display JME expressions",
        epilog="Examples:\n"
               "  jme '2 + 3*4'                      Evaluate\n"
               "  jme -D a=3 -D b=a^2 'a + b'        Evaluate with variables\n"
               "  jme -s all 'x + 1 + 2'             Simplify without evaluating\n"
               "  jme --tex -s basic 'x^2/(-y)'      Simplify and write TeX\n"
               "  jme --ast 'sin(x)^2'               Show the parsed tree\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("expression", help="JME source of the expression")
    parser.add_argument(
        "-s", "--simplify",
        metavar="RULES",
        help="Simplify with these rulesets (comma-separated, e.g. 'all,!collectNumbers') instead of evaluating",
    )
    parser.add_argument("--tex", action="store_true", help="Write the result as TeX")
    parser.add_argument("--ast", action="store_true", help="Print the parsed expression tree and stop")
    parser.add_argument(
        "-D", "--define",
        metavar="NAME=EXPR",
        type=_definition,
        action="append",
        default=[],
        help="Define a variable (can be given several times; definitions may refer to each other)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debugging output")
    return parser


def run(args, out=None):
    """Carry out one invocation.  Raises ``JMEError`` on failure."""
    out = out or sys.stdout
    scope = builtin_scope
    if args.define:
        scope = make_variables(dict(args.define), scope).scope

    tree = compile(args.expression, scope)
    logger.debug("compiled %r as %s", args.expression, tree_to_jme(tree))
    if args.ast:
        print(format_tree(tree), file=out)
        return

    if args.simplify is not None:
        ruleset = collect_ruleset(args.simplify, scope.rulesets)
        result = simplify(tree, ruleset, scope)
        text = texify(result, ruleset.flags) if args.tex else tree_to_jme(result, ruleset.flags)
        print(text, file=out)
        return

    value = evaluate(tree, scope)
    if value is None:
        return
    print(texify(Tree(value)) if args.tex else token_to_jme(value), file=out)


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(args)
    except JMEError as e:
        print_errors([e])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
