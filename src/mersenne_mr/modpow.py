# -----------------------------------------------------------------------------
#  modpow.py
#  Modular exponentiation by binary square-and-multiply
# -----------------------------------------------------------------------------

from __future__ import annotations

import gmpy2

from mersenne_mr.utility import as_unsigned


def bmodpow(base: int, exponent: int, modulus: int) -> int:
    """
    Return base**exponent mod modulus without building base**exponent.

    Walks the bits of `exponent` from the least significant one: multiply the
    result by the running base when the bit is set, square the running base
    every step. Each product is reduced, so operands stay below `modulus`.

    Edge cases, checked in this order:
      - base == 0: 1 if exponent == 0 (0**0 == 1), else 0.
      - modulus == 1: 0, whatever base and exponent are.
      - modulus == 0: ZeroDivisionError.

    With exponent == 0 the result is 1 without reduction.
    """
    base = as_unsigned(base, "base")
    exponent = as_unsigned(exponent, "exponent")
    modulus = as_unsigned(modulus, "modulus")

    if base == 0:
        return 1 if exponent == 0 else 0

    if modulus == 1:
        return 0

    if modulus == 0:
        raise ZeroDivisionError("bmodpow() modulus must not be zero")

    m = gmpy2.mpz(modulus)
    working = gmpy2.mpz(base)
    result = gmpy2.mpz(1)

    bits = exponent
    while bits:
        if bits & 1:
            result = (result * working) % m
        working = (working * working) % m
        bits >>= 1

    return int(result)
