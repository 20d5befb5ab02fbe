from __future__ import annotations

import cmath
import logging
import math
import random
from decimal import Decimal
from typing import Optional, Sequence, Union

from errors import NumericError

logger = logging.getLogger(__name__)

# Scalars are plain floats or Python complex numbers.  Integer results are
# stored as floats so every number behaves the same way in the engine.
Number = Union[float, complex]

PI = math.pi
E = math.e
INF = math.inf
NAN = math.nan


def _first_primes(count: int) -> tuple[int, ...]:
    """Return the first *count* primes (sieve of Eratosthenes up to 8000)."""
    limit = 8000
    sieve = [True] * (limit + 1)
    sieve[0] = sieve[1] = False
    for p in range(2, int(limit ** 0.5) + 1):
        if sieve[p]:
            sieve[p * p::p] = [False] * len(sieve[p * p::p])
    return tuple(p for p, is_prime in enumerate(sieve) if is_prime)[:count]


PRIMES: tuple[int, ...] = _first_primes(1000)


# ----------------------
# Predicates and helpers
# ----------------------

def is_complex(x: Number) -> bool:
    return isinstance(x, complex)


def to_number(x) -> Number:
    """Normalise ints and bools to float; leave floats and complex alone."""
    if isinstance(x, complex):
        return x
    return float(x)


def is_int(x: Number) -> bool:
    if is_complex(x):
        return x.imag == 0 and is_int(x.real)
    return math.isfinite(x) and x == math.floor(x)


def is_infinite(x: Number) -> bool:
    return not is_complex(x) and math.isinf(x)


def is_nan(x: Number) -> bool:
    if is_complex(x):
        return math.isnan(x.real) or math.isnan(x.imag)
    return math.isnan(x)


def js_round(x: float) -> float:
    """Round half towards positive infinity, as JavaScript's ``Math.round``."""
    if not math.isfinite(x):
        return x
    return float(math.floor(x + 0.5))


def _fmod(a: float, b: float) -> float:
    # remainder with the sign of the dividend
    if b == 0 or not math.isfinite(a):
        return NAN
    return math.fmod(a, b)


def _real_only(x: Number) -> float:
    if is_complex(x):
        raise NumericError("jme.math.order complex numbers")
    return x


# ----------------------
# Arithmetic
# ----------------------

def negate(a: Number) -> Number:
    return -a


def add(a: Number, b: Number) -> Number:
    return a + b


def sub(a: Number, b: Number) -> Number:
    return a - b


def mul(a: Number, b: Number) -> Number:
    return a * b


def div(a: Number, b: Number) -> Number:
    """Divide, following IEEE float semantics for division by zero.

    Examples
    --------
    >>> div(1.0, 0.0)
    inf
    >>> div(-1.0, 0.0)
    -inf
    """
    if is_complex(a) or is_complex(b):
        if b == 0:
            return complex(NAN, NAN)
        return a / b
    if b == 0:
        if a == 0 or math.isnan(a):
            return NAN
        return math.copysign(INF, a) * math.copysign(1.0, b)
    return a / b


def pow(a: Number, b: Number) -> Number:
    """Raise *a* to the power *b*, going complex only when required.

    Examples
    --------
    >>> pow(2.0, 10.0)
    1024.0
    >>> pow(-8.0, 1/3).imag > 0
    True
    """
    if is_complex(a) or is_complex(b) or (a < 0 and not is_int(b)):
        a = complex(a)
        b = complex(b)
        if a == 0:
            return complex(0.0) if b.real > 0 else complex(INF, 0)
        if b.imag == 0 and is_int(b.real) and abs(b.real) < 100:
            return a ** int(b.real)
        return cmath.exp(b * cmath.log(a))
    if a == 0 and b < 0:
        if is_int(b) and b % 2 == 1:
            return math.copysign(INF, a)
        return INF
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0 and is_int(b) and b % 2 == 1:
            return -INF
        return INF
    except ValueError:
        return NAN


def root(a: Number, b: Number) -> Number:
    return pow(a, div(1.0, b))


def abs_(a: Number) -> float:
    return abs(a)


def arg(a: Number) -> float:
    if is_complex(a):
        return math.atan2(a.imag, a.real)
    return math.atan2(0.0, a)


def re(a: Number) -> float:
    return a.real if is_complex(a) else a


def im(a: Number) -> float:
    return a.imag if is_complex(a) else 0.0


def conj(a: Number) -> Number:
    return a.conjugate() if is_complex(a) else a


def sqrt(a: Number) -> Number:
    if is_complex(a):
        return cmath.sqrt(a)
    if a < 0:
        return complex(0.0, math.sqrt(-a))
    return math.sqrt(a)


def log(a: Number) -> Number:
    """Natural logarithm; ``log(-x) = ln(x) + i*pi``."""
    if is_complex(a):
        if a == 0:
            return -INF
        return cmath.log(a)
    if a == 0:
        return -INF
    if math.isnan(a):
        return NAN
    if a < 0:
        return complex(_ln(-a), PI)
    return _ln(a)


def _ln(a: float) -> float:
    if math.isinf(a):
        return INF
    return math.log(a)


def log10(a: Number) -> Number:
    return div(log(a), math.log(10))


def exp(a: Number) -> Number:
    if is_complex(a):
        return cmath.exp(a)
    try:
        return math.exp(a)
    except OverflowError:
        return INF


# ----------------------
# Trigonometry
# ----------------------

def _both(real_fn, complex_fn):
    def fn(a: Number) -> Number:
        if is_complex(a):
            return complex_fn(a)
        try:
            return real_fn(a)
        except (ValueError, OverflowError):
            return NAN
    fn.__name__ = real_fn.__name__
    return fn


sin = _both(math.sin, cmath.sin)
cos = _both(math.cos, cmath.cos)
tan = _both(math.tan, cmath.tan)
arctan = _both(math.atan, cmath.atan)
sinh = _both(math.sinh, cmath.sinh)
cosh = _both(math.cosh, cmath.cosh)
tanh = _both(math.tanh, cmath.tanh)
arcsinh = _both(math.asinh, cmath.asinh)


def cosec(a: Number) -> Number:
    return div(1.0, sin(a))


def sec(a: Number) -> Number:
    return div(1.0, cos(a))


def cot(a: Number) -> Number:
    return div(1.0, tan(a))


def cosech(a: Number) -> Number:
    return div(1.0, sinh(a))


def sech(a: Number) -> Number:
    return div(1.0, cosh(a))


def coth(a: Number) -> Number:
    return div(1.0, tanh(a))


def arcsin(a: Number) -> Number:
    if is_complex(a) or abs(a) > 1:
        return cmath.asin(complex(a))
    return math.asin(a)


def arccos(a: Number) -> Number:
    if is_complex(a) or abs(a) > 1:
        return cmath.acos(complex(a))
    return math.acos(a)


def arccosh(a: Number) -> Number:
    if is_complex(a) or a < 1:
        return cmath.acosh(complex(a))
    return math.acosh(a)


def arctanh(a: Number) -> Number:
    if is_complex(a) or abs(a) > 1:
        return cmath.atanh(complex(a))
    if abs(a) == 1:
        return math.copysign(INF, a)
    return math.atanh(a)


def degrees(a: Number) -> Number:
    return mul(a, 180 / PI)


def radians(a: Number) -> Number:
    return mul(a, PI / 180)


# ----------------------
# Rounding and parts
# ----------------------

def _componentwise(fn):
    def wrapped(a: Number) -> Number:
        if is_complex(a):
            return complex(fn(a.real), fn(a.imag))
        return fn(a)
    wrapped.__name__ = fn.__name__
    return wrapped


def _ceil(a: float) -> float:
    return float(math.ceil(a)) if math.isfinite(a) else a


def _floor(a: float) -> float:
    return float(math.floor(a)) if math.isfinite(a) else a


def _trunc(a: float) -> float:
    return float(math.trunc(a)) if math.isfinite(a) else a


def _fract(a: float) -> float:
    return a - _trunc(a) if math.isfinite(a) else NAN


ceil = _componentwise(_ceil)
floor = _componentwise(_floor)
trunc = _componentwise(_trunc)
fract = _componentwise(_fract)
round_ = _componentwise(js_round)


def sign(a: Number) -> Number:
    if is_complex(a):
        return complex(sign(a.real), sign(a.imag))
    if math.isnan(a):
        return NAN
    return 0.0 if a == 0 else math.copysign(1.0, a)


def _shift(digits: float, places: float, whole: float = 0.0) -> float:
    """``whole + digits * 10^-places``, summed exactly and rounded once."""
    if not math.isfinite(places) or places != int(places):
        return whole + digits / 10 ** places
    return float(Decimal(int(whole)) + Decimal(int(digits)).scaleb(-int(places)))


def precround(a: Number, b: Number) -> Number:
    """Round *a* to *b* decimal places.

    If ``a*10^b`` is less than 1e-9 away from having a five as the last digit
    of its whole part, it is rounded up anyway: this absorbs floating-point
    representation error such as ``1.005 * 100 == 100.49999999999999``.

    Examples
    --------
    >>> precround(1.005, 2)
    1.01
    >>> precround(-2.5, 0)
    -2.0
    """
    if is_complex(a):
        return complex(precround(a.real, b), precround(a.imag, b))
    b = re(b)
    if not math.isfinite(a):
        return a
    scale = 10 ** b
    frac_part = math.fmod(a, 1)
    int_part = a - frac_part
    v = math.fmod(frac_part * scale * 10, 1)
    d = (math.floor if frac_part > 0 else math.ceil)(math.fmod(frac_part * scale * 10, 10))
    frac_part *= scale
    if (d == 4 and 1 - v < 1e-9) or (d == -5 and -1e-9 < v < 0):
        frac_part += 1
    return _shift(js_round(frac_part), b, int_part)


def siground(a: Number, b: Number) -> Number:
    """Round *a* to *b* significant figures (same tie-break as ``precround``).

    Examples
    --------
    >>> siground(123456, 2)
    120000.0
    >>> siground(0.0012345, 3)
    0.00123
    """
    if is_complex(a):
        return complex(siground(a.real, b), siground(a.imag, b))
    b = re(b)
    if a == 0 or not math.isfinite(a):
        return a
    places = b - math.ceil(math.log10(sign(a) * a))
    scale = 10 ** places
    v = _fmod(a * scale * 10, 1)
    d = (math.floor if a > 0 else math.ceil)(_fmod(a * scale * 10, 10))
    if (d == 4 and 1 - v < 1e-9) or (d == -5 and -1e-9 < v < 0):
        a += 1 / (scale * 10)
    return _shift(js_round(a * scale), places)


# ----------------------
# Ordering and equality
# ----------------------

def eq(a: Number, b: Number) -> bool:
    if is_complex(a) or is_complex(b):
        return re(a) == re(b) and im(a) == im(b)
    return a == b


def lt(a: Number, b: Number) -> bool:
    return _real_only(a) < _real_only(b)


def gt(a: Number, b: Number) -> bool:
    return _real_only(a) > _real_only(b)


def leq(a: Number, b: Number) -> bool:
    return _real_only(a) <= _real_only(b)


def geq(a: Number, b: Number) -> bool:
    return _real_only(a) >= _real_only(b)


def max_(a: Number, b: Number) -> float:
    return max(_real_only(a), _real_only(b))


def min_(a: Number, b: Number) -> float:
    return min(_real_only(a), _real_only(b))


# ----------------------
# Number theory and combinatorics
# ----------------------

def mod(a: Number, b: Number) -> float:
    a, b = _real_only(a), _real_only(b)
    if b == INF:
        return a
    b = abs(b)
    return _fmod(_fmod(a, b) + b, b)


def _lanczos_gamma(z: complex) -> complex:
    g = 7
    coefficients = [
        0.99999999999980993, 676.5203681218851, -1259.1392167224028,
        771.32342877765313, -176.61502916214059, 12.507343278686905,
        -0.13857109526572012, 9.9843695780195716e-6, 1.5056327351493116e-7,
    ]
    if z.real < 0.5:
        return PI / (cmath.sin(PI * z) * _lanczos_gamma(1 - z))
    z -= 1
    x = coefficients[0]
    for i in range(1, g + 2):
        x += coefficients[i] / (z + i)
    t = z + g + 0.5
    return cmath.sqrt(2 * PI) * t ** (z + 0.5) * cmath.exp(-t) * x


def gamma(a: Number) -> Number:
    if is_complex(a):
        return _lanczos_gamma(a)
    if is_int(a) and a <= 0:
        return NAN
    try:
        return math.gamma(a)
    except OverflowError:
        return INF


def factorial(n: Number) -> Number:
    """``n!`` for non-negative integers, ``gamma(n+1)`` otherwise."""
    if is_int(n) and re(n) >= 0:
        n = int(re(n))
        if n > 170:
            return INF
        return float(math.factorial(n))
    return gamma(add(n, 1.0))


def permutations(n: Number, k: Number) -> float:
    if is_complex(n) or is_complex(k):
        raise NumericError("jme.math.permutations.complex")
    if n < 0:
        raise NumericError("jme.math.permutations.n less than zero")
    if k < 0:
        raise NumericError("jme.math.permutations.k less than zero")
    if n < k:
        raise NumericError("jme.math.permutations.n less than k")
    return div(factorial(n), factorial(n - k))


def combinations(n: Number, k: Number) -> float:
    if is_complex(n) or is_complex(k):
        raise NumericError("jme.math.combinations.complex")
    if n < 0:
        raise NumericError("jme.math.combinations.n less than zero")
    if k < 0:
        raise NumericError("jme.math.combinations.k less than zero")
    if n < k:
        raise NumericError("jme.math.combinations.n less than k")
    return div(factorial(n), mul(factorial(k), factorial(n - k)))


def gcf(a: Number, b: Number) -> float:
    """Greatest common factor of two integers; 1 if either is not an integer."""
    if is_complex(a) or is_complex(b):
        raise NumericError("jme.math.gcf.complex")
    if not (is_int(a) and is_int(b)):
        return 1.0
    a, b = abs(int(a)), abs(int(b))
    if a < b:
        a, b = b, a
    if b == 0:
        return float(a) if a else 1.0
    return float(math.gcd(a, b))


def gcd_without_pi_or_i(a: Number, b: Number) -> float:
    """GCF of *a* and *b* after dividing out their common power of pi, and
    ``i`` when both are purely imaginary.

    Examples
    --------
    >>> gcd_without_pi_or_i(4 * math.pi, 6 * math.pi)
    2.0
    >>> gcd_without_pi_or_i(4j, 6j)
    2.0
    """
    if re(a) == 0 and im(a) != 0 and re(b) == 0 and im(b) != 0:
        a, b = im(a), im(b)
    a, b = re(a), re(b)
    degree = min(pi_degree(a), pi_degree(b))
    if degree:
        a = precround(a / PI ** degree, 8)
        b = precround(b / PI ** degree, 8)
    return gcf(a, b)


def lcm(a: Number, b: Number) -> float:
    if is_complex(a) or is_complex(b):
        raise NumericError("jme.math.lcm.complex")
    if a == 0 or b == 0:
        return 0.0
    return abs(a * b) / gcf(a, b)


def lcm_list(values: Sequence[Number]) -> float:
    result = 1.0
    for v in values:
        result = lcm(result, v)
    return result


def divides(a: Number, b: Number) -> bool:
    if is_complex(a) or is_complex(b) or not is_int(a) or not is_int(b):
        return False
    if a == 0:
        return b == 0
    return b % a == 0


def factorise(n: Number) -> list[float]:
    """Exponents of the prime factorisation of *n* over :data:`PRIMES`.

    Only the first 1000 primes are tried.  If a factor of *n* lies beyond
    the table the exponents found so far are returned and the remainder is
    dropped.

    Examples
    --------
    >>> factorise(12)
    [2.0, 1.0]
    >>> factorise(1)
    []
    """
    n = re(n)
    if n <= 0 or not is_int(n):
        return []
    n = int(n)
    factors: list[float] = []
    for p in PRIMES:
        if n == 1:
            break
        acc = 0
        while n % p == 0:
            acc += 1
            n //= p
        factors.append(float(acc))
    if n > 1:
        logger.warning("factorise: %d has a prime factor beyond the first %d primes; dropped", n, len(PRIMES))
    return factors


# ----------------------
# Random choices
# ----------------------

def random_range(start: float, end: float, step: float, values: Optional[Sequence[float]] = None) -> float:
    """Pick a random number from a range.

    Discrete ranges pick one of *values*; continuous ranges (step 0) pick a
    uniform real in ``[start, end]``.
    """
    if step == 0:
        return random.uniform(start, end)
    if not values:
        raise NumericError("jme.func.random.empty")
    return random.choice(list(values))


def choose(items: Sequence):
    if len(items) == 0:
        raise NumericError("jme.func.random.empty")
    return random.choice(list(items))


def deal(n: Number) -> list[float]:
    values = [float(i) for i in range(int(re(n)))]
    random.shuffle(values)
    return values


def shuffle(items: Sequence) -> list:
    items = list(items)
    random.shuffle(items)
    return items


# ----------------------
# Formatting
# ----------------------

def js_number_string(x: float) -> str:
    """Shortest decimal representation of *x*, never in scientific notation.

    Examples
    --------
    >>> js_number_string(2.0)
    '2'
    >>> js_number_string(1.5e-7)
    '0.00000015'
    >>> js_number_string(1e21)
    '1000000000000000000000'
    """
    if x == 0:
        return "0"
    text = format(Decimal(repr(x)).normalize(), "f")
    return text


def count_dp(text: str) -> int:
    if "." not in text:
        return 0
    return len(text.split(".", 1)[1])


def count_sig_figs(text: str) -> int:
    digits = text.lstrip("-").replace(".", "").lstrip("0")
    return len(digits)


def pad_decimal_places(text: str, places: int) -> str:
    missing = places - count_dp(text)
    if missing <= 0:
        return text
    if "." not in text:
        text += "."
    return text + "0" * missing


def pad_sig_figs(text: str, sig_figs: int) -> str:
    if text.lstrip("-") == "0":
        return pad_decimal_places(text, sig_figs - 1)
    missing = sig_figs - count_sig_figs(text)
    if missing <= 0:
        return text
    if "." not in text:
        text += "."
    return text + "0" * missing


def pi_degree(n: float) -> int:
    """Power of pi that *n* is an integer multiple of (0 if none found).

    Examples
    --------
    >>> pi_degree(math.pi * 3)
    1
    >>> pi_degree(math.pi ** 2 / 2)
    0
    >>> pi_degree(5.0)
    0
    """
    n = abs(n)
    # big numbers would round to a power of pi by accident
    if n > 10000 or n == 0 or not math.isfinite(n):
        return 0
    degree = 1
    while True:
        a = n / PI ** degree
        if not (a > 1 and abs(a - js_round(a)) > 1e-8):
            break
        degree += 1
    return degree if a >= 1 else 0


def nice_number(n: Number, options: Optional[dict] = None) -> str:
    """Render a number for display.

    Parameters
    ----------
    n : float or complex
        The number to render.
    options : dict or None
        ``precisionType`` (``"dp"`` or ``"sigfig"``) and ``precision`` give a
        fixed number of decimal places / significant figures, padding with
        zeros.  Without a precision type multiples of powers of pi are
        written with ``pi`` and the value is rounded to 10 d.p.,
        unless ``exact`` is set and that would change the value.

    Returns
    -------
    str
        JME source for the number, e.g. ``"2"``, ``"0.5"``, ``"3 pi"``,
        ``"1 + 2*i"``, ``"infinity"``.

    Examples
    --------
    >>> nice_number(2.0)
    '2'
    >>> nice_number(math.pi)
    'pi'
    >>> nice_number(1.5, {"precisionType": "dp", "precision": 3})
    '1.500'
    >>> nice_number(complex(1, -2))
    '1 - 2*i'
    """
    options = options or {}
    if is_complex(n):
        real = nice_number(n.real, options)
        imag = nice_number(n.imag, options)
        exact = options.get("exact")
        if (n.imag == 0) if exact else (precround(n.imag, 10) == 0):
            return real
        if (n.real == 0) if exact else (precround(n.real, 10) == 0):
            if n.imag == 1:
                return "i"
            if n.imag == -1:
                return "-i"
            return imag + "*i"
        if n.imag < 0:
            if n.imag == -1:
                return real + " - i"
            return real + " - " + imag.lstrip("-") + "*i"
        if n.imag == 1:
            return real + " + i"
        return real + " + " + imag + "*i"

    if math.isnan(n):
        return "nan"
    if n == INF:
        return "infinity"
    if n == -INF:
        return "-infinity"

    precision_type = options.get("precisionType")
    original = n
    piD = 0
    if precision_type is None:
        piD = pi_degree(n)
        if piD > 0:
            n /= PI ** piD

    if precision_type == "sigfig":
        precision = int(options["precision"])
        out = pad_sig_figs(js_number_string(siground(n, precision)), precision)
    elif precision_type == "dp":
        precision = int(options["precision"])
        out = pad_decimal_places(js_number_string(precround(n, precision)), precision)
    else:
        a = abs(n)
        if a < 1e-15:
            out = "0"
        elif a < 1e-8:
            out = js_number_string(n)
        else:
            out = js_number_string(precround(n, 10))
        if options.get("exact") and float(out) * PI ** piD != original:
            return js_number_string(original)

    if piD == 0:
        return out
    power = "" if piD == 1 else "^" + str(piD)
    if n == 1:
        return "pi" + power
    if n == -1:
        return "-pi" + power
    return out + " pi" + power


def rational_approximation(n: float, accuracy: float = 15) -> tuple[int, int]:
    """Approximate *n* by a fraction using its continued fraction expansion.

    The expansion stops once the convergent is within ``exp(-accuracy)`` of
    *n*.

    Examples
    --------
    >>> rational_approximation(0.75)
    (3, 4)
    >>> rational_approximation(1 / 3)
    (1, 3)
    >>> rational_approximation(-2.5)
    (-5, 2)
    """
    tolerance = math.exp(-accuracy)
    original = n
    estimate = math.floor(n)
    if estimate == n:
        return int(n), 1
    terms: list[int] = []
    while abs(original - estimate) > tolerance and len(terms) < 64:
        i = math.floor(n)
        terms.append(i)
        if n - i == 0:
            break
        n = 1 / (n - i)
        estimate = INF
        for term in reversed(terms):
            estimate = term + 1 / estimate
    if not terms:
        return int(estimate), 1
    numerator, denominator = 1, 0
    for term in reversed(terms):
        numerator, denominator = term * numerator + denominator, numerator
    return int(numerator), int(denominator)


def range_values(start: float, end: float, step: float) -> list[float]:
    """Discrete values of the range ``start..end#step`` (empty for step 0).

    Examples
    --------
    >>> range_values(1, 5, 1)
    [1.0, 2.0, 3.0, 4.0, 5.0]
    >>> range_values(0, 1, 0.25)
    [0.0, 0.25, 0.5, 0.75, 1.0]
    >>> range_values(5, 1, -2)
    [5.0, 3.0, 1.0]
    """
    if step == 0:
        return []
    count = (end - start) / step
    if count < 0 or not math.isfinite(count):
        return []
    n = math.floor(count + 1e-10) + 1
    return [float(start + i * step) for i in range(n)]
