# -----------------------------------------------------------------------------
#  mersenne.py
#  Mersenne numbers 2^p - 1 and Mersenne prime search
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Callable, Iterator
from decimal import Decimal, localcontext

from sympy import primerange

from mersenne_mr.modpow import bmodpow
from mersenne_mr.primality import is_prime
from mersenne_mr.utility import as_unsigned


def mersenne_number(n: int) -> int:
    """
    Return the Mersenne number 2**n - 1.

    >>> mersenne_number(5)
    31
    >>> mersenne_number(61)
    2305843009213693951
    """
    n = as_unsigned(n, "n")
    return (1 << n) - 1


def mersenne_exponent(n: int) -> int | None:
    """Return p if n == 2**p - 1 exactly, else None."""
    m = n + 1
    if m <= 0:
        return None
    if m & (m - 1):
        return None
    return m.bit_length() - 1


def mersenne_leading_digits(p: int, k: int = 20) -> int:
    """First k decimal digits of 2^p - 1 (p >= 1, 2^p - 1 has at least k digits)."""
    with localcontext() as ctx:
        # k digits + margin for the integer part of p*log10(2)
        ctx.prec = k + len(str(p)) + 10
        x = Decimal(p) * (Decimal(2).ln() / Decimal(10).ln())
        f = x - x.to_integral_value(rounding="ROUND_FLOOR")
        return int((Decimal(10) ** (f + (k - 1))).to_integral_value(rounding="ROUND_FLOOR"))


def mersenne_trailing_digits(p: int, k: int = 20) -> int:
    """Last k decimal digits of 2^p - 1, computed with modular exponentiation."""
    mod = 10 ** k
    return (bmodpow(2, p, mod) - 1) % mod


def abbr_mersenne_number(p: int, *, k: int = 20, ellipsis: str = "…") -> str:
    lead = mersenne_leading_digits(p, k)
    tail = mersenne_trailing_digits(p, k)
    return f"{lead:0{k}d}{ellipsis}{tail:0{k}d}"


def mersenne_candidates(start: int, stop: int, *, prime_exponents: bool = True) -> list[int]:
    """
    Exponents in [start, stop) worth testing.
    2^p - 1 can only be prime when p is prime, so by default only prime p are kept.
    """
    start = as_unsigned(start, "start")
    stop = as_unsigned(stop, "stop")
    if stop <= start:
        return []
    if prime_exponents:
        return [int(p) for p in primerange(start, stop)]
    return list(range(start, stop))


def find_mersenne_primes(
    start: int,
    stop: int,
    *,
    prime_exponents: bool = True,
    on_step: Callable[[int, int, int], None] | None = None,
) -> Iterator[int]:
    """
    Yield each exponent p in [start, stop) for which 2^p - 1 is probably prime.

    on_step(done, total, p) is called after every tested exponent.
    """
    exponents = mersenne_candidates(start, stop, prime_exponents=prime_exponents)
    total = len(exponents)
    for done, p in enumerate(exponents, start=1):
        hit = is_prime(mersenne_number(p))
        if on_step is not None:
            on_step(done, total, p)
        if hit:
            yield p
