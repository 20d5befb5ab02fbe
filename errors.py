from __future__ import annotations

from typing import Any


# Every error raised by the engine carries a machine-readable kind (a key of
# this table) plus the positional arguments used to format the message.
ERROR_MESSAGES: dict[str, str] = {
    # tokenizer
    "jme.tokenise.invalid": "Invalid expression: {0}",

    # parser
    "jme.shunt.not enough args": "Not enough arguments for operation {0}",
    "jme.shunt.no left bracket in function": "No matching left bracket in function application or tuple",
    "jme.shunt.no left square bracket": "No matching left square bracket",
    "jme.shunt.no left bracket": "No matching left bracket",
    "jme.shunt.no right bracket": "No matching right bracket",
    "jme.shunt.no right square bracket": "No matching right square bracket to end list",
    "jme.shunt.missing operator": "Expression can't be evaluated -- missing an operator.",
    "jme.shunt.list index arity": "A list index must be a single value, got {0}",

    # evaluation / dispatch
    "jme.evaluate.undefined variable": "Variable {0} is undefined",
    "jme.substituteTree.undefined variable": "Undefined variable: {0}",
    "jme.typecheck.function maybe implicit multiplication": "Operation {0} is not defined. Did you mean {1}*{2}(...)?",
    "jme.typecheck.function not defined": "Operation '{0}' is not defined. Did you mean {0}*(...)?",
    "jme.typecheck.op not defined": "Operation '{0}' is not defined.",
    "jme.typecheck.no right type definition": "No definition of '{0}' of correct type found.",
    "jme.typecheck.no right type unbound name": "Variable {0} is not defined",
    "jme.typecheck.map not on enumerable": "map operation must work over a list or a range, not {0}",
    "jme.func.if.condition not a boolean": "The condition of if() must be a boolean, not {0}",
    "jme.func.switch.no default case": "No default case for Switch statement",
    "jme.func.switch.condition not a boolean": "A condition in switch() must be a boolean, not {0}",
    "jme.func.listval.invalid index": "Invalid list index {0} on list of size {1}",
    "jme.func.listval.not a list": "Object is not subscriptable",
    "jme.func.satisfy.wrong number of definitions": "satisfy() needs one definition for each name",
    "jme.func.satisfy.condition not a boolean": "A condition in satisfy() must be a boolean",
    "jme.func.satisfy.took too many runs": "satisfy() took too many runs",
    "jme.func.map.names": "map() needs a name or a list of names to bind",
    "jme.func.isa.kind": "The second argument of isa must be a type name",
    "jme.func.random.empty": "Can't choose a random value from an empty collection",
    "jme.func.empty list": "Can't take the {0} of an empty list",

    # numeric kernel
    "jme.math.order complex numbers": "Can't order complex numbers",
    "jme.math.complex not allowed": "Complex numbers are not allowed in {0}",
    "jme.math.gcf.complex": "Can't take GCF of complex numbers",
    "jme.math.lcm.complex": "Can't find LCM of complex numbers",
    "jme.math.combinations.complex": "Can't compute combinations of complex numbers",
    "jme.math.combinations.n less than zero": "Can't compute combinations: n is less than zero",
    "jme.math.combinations.k less than zero": "Can't compute combinations: k is less than zero",
    "jme.math.combinations.n less than k": "Can't compute combinations: n is less than k",
    "jme.math.permutations.complex": "Can't compute permutations of complex numbers",
    "jme.math.permutations.n less than zero": "Can't compute permutations: n is less than zero",
    "jme.math.permutations.k less than zero": "Can't compute permutations: k is less than zero",
    "jme.math.permutations.n less than k": "Can't compute permutations: n is less than k",
    "jme.vectormath.cross.not 3d": "Can only take the cross product of 3-dimensional vectors.",
    "jme.matrixmath.mul.different sizes": "Can't multiply matrices of different sizes.",
    "jme.matrixmath.abs.non-square": "Can't compute the determinant of a matrix which isn't square.",
    "jme.matrixmath.abs.too big": "Sorry, can't compute the determinant of a matrix bigger than 3x3 yet.",
    "jme.matrix.ragged": "All rows of a matrix must contain numbers",

    # simplifier
    "jme.rules.unbound replacement name": "Name {0} in the replacement of rule {1} is not captured by its pattern",
    "jme.rules.no result": "Rule {0} has no replacement",
    "jme.display.collectRuleset.no sets": "No sets given to collectRuleset!",
    "jme.display.collectRuleset.set not defined": "Ruleset {0} has not been defined",
    "jme.display.simplify.too many steps": "Simplification did not settle after {0} rewrites",
    "jme.pattern.bad capture": "The right-hand side of ; must be a name, not {0}",
    "jme.pattern.m_type": "m_type needs a type name",

    # variables
    "jme.variables.empty name": "A variable has not been given a name.",
    "jme.variables.empty definition": "Definition of variable {0} is empty.",
    "jme.variables.circular reference": "Circular variable reference in definition of {0}: {1}",
    "jme.variables.variable not defined": "Variable {0} is not defined.",
    "jme.variables.error computing dependency": "Error computing referenced variable {0}",
    "jme.variables.error evaluating variable": "Error evaluating variable {0}: {1}",
    "jme.variables.too many runs": "Could not generate a set of variables satisfying the condition in {0} runs",
    "jme.variables.unsupported function language": "Custom function {0} is written in {1}; only jme functions are supported",
    "jme.variables.error making function": "Error making function {0}: {1}",
}


class JMEError(Exception):
    """Structured error raised by every stage of the engine.

    Parameters
    ----------
    kind : str
        Key of :data:`ERROR_MESSAGES`, e.g. ``"jme.shunt.no left bracket"``.
    *args : Any
        Values substituted into the message template.

    Examples
    --------
    >>> e = JMEError("jme.evaluate.undefined variable", "x")
    >>> e.kind
    'jme.evaluate.undefined variable'
    >>> str(e)
    'Variable x is undefined'
    """

    def __init__(self, kind: str, *args: Any) -> None:
        self.kind = kind
        self.message_args = args
        self.message = format_message(kind, *args)
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class LexicalError(JMEError, SyntaxError):
    pass


class ParseError(JMEError, SyntaxError):
    pass


class BindingError(JMEError, NameError):
    pass


class DispatchError(JMEError, TypeError):
    pass


class NumericError(JMEError, ValueError):
    pass


class ResourceError(JMEError, RuntimeError):
    pass


def format_message(kind: str, *args: Any) -> str:
    template = ERROR_MESSAGES.get(kind)
    if template is None:
        return " ".join([kind] + [str(a) for a in args])
    return template.format(*args)
