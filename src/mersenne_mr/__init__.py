from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("mersenne-mr")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .mersenne import find_mersenne_primes, mersenne_exponent, mersenne_number
from .modpow import bmodpow
from .primality import (
    PrimalityReport,
    WitnessOutcome,
    is_prime,
    is_prime_from_str,
    miller_rabin_report,
    witness_bases,
)
from .utility import ParseError, UserInputError, parse_decimal

__all__ = [
    "ParseError",
    "PrimalityReport",
    "UserInputError",
    "WitnessOutcome",
    "__version__",
    "bmodpow",
    "find_mersenne_primes",
    "is_prime",
    "is_prime_from_str",
    "mersenne_exponent",
    "mersenne_number",
    "miller_rabin_report",
    "parse_decimal",
    "witness_bases",
]
