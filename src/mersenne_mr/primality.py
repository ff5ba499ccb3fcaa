# -----------------------------------------------------------------------------
#  primality.py
#  Miller-Rabin probable-prime test with a digit-count witness policy
# -----------------------------------------------------------------------------

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from enum import Enum

import gmpy2

from mersenne_mr.modpow import bmodpow
from mersenne_mr.utility import dec_digits, parse_decimal

"""
The witness set is not random and not a fixed security parameter: for a
candidate with d decimal digits the bases 3, 4, ..., d + 3 are tried, in that
order. Results are reproducible run to run, but this is NOT a witness policy
suitable for cryptographic use; a composite that is a strong pseudoprime to
every one of those bases is reported as prime.
"""

_SMALL_PRIMES = frozenset({2, 3, 5})


class WitnessOutcome(Enum):
    PROBABLE = "probable"                # w^e hit 1 or n-1: no evidence against n
    NONTRIVIAL_ROOT = "nontrivial-root"  # a square reached 1 before n-1: composite
    EXHAUSTED = "exhausted"              # squarings ran out without reaching n-1: composite

    @property
    def is_composite(self) -> bool:
        return self is not WitnessOutcome.PROBABLE


@dataclass(frozen=True)
class WitnessResult:
    base: int
    outcome: WitnessOutcome
    squarings: int  # squarings performed after the initial bmodpow


@dataclass(frozen=True)
class PrimalityReport:
    n: int
    probable_prime: bool
    reason: str
    trials: int | None = None
    exponent: int | None = None
    witnesses: tuple[WitnessResult, ...] = field(default_factory=tuple)

    @property
    def deciding_witness(self) -> WitnessResult | None:
        """The witness that proved n composite, if any."""
        if self.witnesses and self.witnesses[-1].outcome.is_composite:
            return self.witnesses[-1]
        return None


def decompose(n: int) -> tuple[int, int]:
    """
    Write n - 1 = 2**trials * exponent with exponent odd.
    Returns (trials, exponent). Requires odd n >= 3.
    """
    exponent = n - 1
    trials = 0
    while exponent % 2 == 0:
        exponent //= 2
        trials += 1
    return trials, exponent


def witness_bases(n: int) -> range:
    """Deterministic witnesses for n: 3, 4, ..., dec_digits(n) + 3."""
    return range(3, dec_digits(n) + 4)


def check_witness(w: int, exponent: int, trials: int, n: int) -> WitnessOutcome:
    """Run one Miller-Rabin round for base w."""
    outcome, _ = _run_witness(w, exponent, trials, n)
    return outcome


def _run_witness(w: int, exponent: int, trials: int, n: int) -> tuple[WitnessOutcome, int]:
    n_sub = n - 1
    x = gmpy2.mpz(bmodpow(w, exponent, n))

    if x == 1 or x == n_sub:
        return WitnessOutcome.PROBABLE, 0

    squarings = 0
    for _ in range(1, trials):
        x = (x * x) % n
        squarings += 1
        if x == 1:
            return WitnessOutcome.NONTRIVIAL_ROOT, squarings
        if x == n_sub:
            return WitnessOutcome.PROBABLE, squarings

    return WitnessOutcome.EXHAUSTED, squarings


def _trivial_verdict(n: int) -> tuple[bool, str] | None:
    if n < 2:
        return False, "less than 2"
    if n in _SMALL_PRIMES:
        return True, "small prime"
    if n % 2 == 0:
        return False, "even"
    return None


def is_prime(n: int | str) -> bool:
    """
    Return True if n is probably prime, False if n is definitely composite.

    A str is parsed with parse_decimal() first (ParseError on bad input).

    Values below 2 are not prime; 2, 3 and 5 are; other even values are not.
    Every remaining odd n goes through Miller-Rabin with the bases from
    witness_bases(n).

    >>> is_prime(13)
    True
    >>> is_prime(2**61 - 1)
    True
    >>> is_prime(21)
    False
    """
    n = parse_decimal(n) if isinstance(n, str) else operator.index(n)

    trivial = _trivial_verdict(n)
    if trivial is not None:
        return trivial[0]

    trials, exponent = decompose(n)
    nz = gmpy2.mpz(n)

    for w in witness_bases(n):
        outcome, _ = _run_witness(w, exponent, trials, nz)
        if outcome.is_composite:
            return False

    return True


def is_prime_from_str(text: str) -> bool:
    """
    Parse a decimal string and test it with is_prime().

    Raises ParseError for anything that is not a non-negative decimal
    integer, so bad input is never mistaken for a composite.

    >>> is_prime_from_str("13")
    True
    """
    return is_prime(parse_decimal(text))


def miller_rabin_report(n: int) -> PrimalityReport:
    """
    Same decision as is_prime(), with the reasoning attached:
    the trivial filter that decided, or the n-1 decomposition and every
    witness tried up to (and including) the first one that proves n composite.
    """
    n = operator.index(n)

    trivial = _trivial_verdict(n)
    if trivial is not None:
        verdict, reason = trivial
        return PrimalityReport(n=n, probable_prime=verdict, reason=reason)

    trials, exponent = decompose(n)
    nz = gmpy2.mpz(n)
    results: list[WitnessResult] = []

    for w in witness_bases(n):
        outcome, squarings = _run_witness(w, exponent, trials, nz)
        results.append(WitnessResult(base=w, outcome=outcome, squarings=squarings))
        if outcome.is_composite:
            return PrimalityReport(
                n=n,
                probable_prime=False,
                reason=f"witness {w} proves composite ({outcome.value})",
                trials=trials,
                exponent=exponent,
                witnesses=tuple(results),
            )

    return PrimalityReport(
        n=n,
        probable_prime=True,
        reason=f"all {len(results)} witnesses passed",
        trials=trials,
        exponent=exponent,
        witnesses=tuple(results),
    )
