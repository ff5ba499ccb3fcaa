# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import operator
import re
import sys

import gmpy2

from mersenne_mr.runtime import current as current_runtime


class UserInputError(Exception):
    pass


class ParseError(UserInputError, ValueError):
    """Raised when a string is not a valid non-negative decimal integer."""

    def __init__(self, text: object, reason: str = "not a non-negative decimal integer"):
        super().__init__(f"Invalid input: {text!r} is {reason}.")
        self.text = text
        self.reason = reason


# Optional '+', then ASCII digits; '_' separators are allowed after the first digit.
_DECIMAL_RE = re.compile(r"\+?[0-9][0-9_]*")


def parse_decimal(text: str) -> int:
    """
    Parse a non-negative decimal integer of any size.

    Goes through gmpy2.mpz, so Python's int/str digit guard
    (sys.get_int_max_str_digits) does not cap the input.
    """
    if not isinstance(text, str):
        raise TypeError(f"expected str, got {type(text).__name__}")
    if not _DECIMAL_RE.fullmatch(text):
        raise ParseError(text)
    digits = text.lstrip("+").replace("_", "")
    try:
        return int(gmpy2.mpz(digits, 10))
    except ValueError:
        raise ParseError(text) from None


def as_unsigned(value: object, name: str = "value") -> int:
    """Coerce an int-like (int, gmpy2.mpz, ...) to int and reject negatives."""
    try:
        n = operator.index(value)
    except TypeError:
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}") from None
    if n < 0:
        raise ValueError(f"{name} must be non-negative, got {n}")
    return n


def dec_digits(n: int) -> int:
    """Exact decimal digit count without str(); handles n >= 0."""
    n = abs(n)
    if n == 0:
        return 1
    # floor(log10(n)) ~= floor(bitlen*log10(2))
    bl = n.bit_length()
    # 0.30103 ~ log10(2)
    est = int((bl * 30103) // 100000)
    # bring into correct decade with at most a couple of steps
    p10 = 10 ** est
    if n < p10:
        while n < p10:
            est -= 1
            p10 //= 10
    else:
        p10 *= 10
        while n >= p10:
            est += 1
            p10 *= 10
    return est + 1


def _effective_digit_limit() -> int:
    """
    Effective decimal-digit limit for stringifying integers: the profile's
    BEHAVIOUR.MAX_DIGITS, tightened by Python's own int/str guard when that
    is active.
    """
    profile_limit = current_runtime().max_digits
    try:
        py_limit = sys.get_int_max_str_digits() or None
    except AttributeError:
        py_limit = None

    if py_limit is None:
        return profile_limit
    return min(profile_limit, py_limit)


def stringify_guarded(n: int, label: str = "number") -> str:
    """Return str(n) or raise a friendly user error if it exceeds the digit guard."""
    limit = _effective_digit_limit()
    if dec_digits(n) > limit:
        raise UserInputError(
            f"{label} has more than {limit} decimal digits. "
            "Increase BEHAVIOUR.MAX_DIGITS in the profile or pass a smaller value."
        )
    try:
        return str(n)
    except ValueError:
        raise UserInputError(
            f"{label} is too large to be converted to a string under "
            "the current settings."
        ) from None


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in d.items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
