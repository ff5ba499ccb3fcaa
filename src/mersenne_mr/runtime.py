# -----------------------------------------------------------------------------
#  runtime.py
#  Active profile and the settings read on every check
# -----------------------------------------------------------------------------

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

DEFAULT_MAX_DIGITS = 100_000


def _as_flag(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _as_digit_limit(value: Any) -> int:
    # TOML gives int; bools and non-positive values fall back to the default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return DEFAULT_MAX_DIGITS
    return value


@dataclass
class Runtime:
    """
    The installed profile.

    The raw TOML tables stay in `settings` for dotted CFG() lookups; the
    BEHAVIOUR/DISPLAY switches that the parser, the formatter and the check
    command consult are synced into typed fields by apply().
    """
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False                     # BEHAVIOUR.DEBUG or --debug
    max_digits: int = DEFAULT_MAX_DIGITS    # BEHAVIOUR.MAX_DIGITS
    verify: bool = False                    # BEHAVIOUR.VERIFY: cross-check with sympy.isprime
    show_witnesses: bool = False            # DISPLAY.SHOW_WITNESSES: always print the report

    def apply(self, settings: Any) -> None:
        self.profile_name = getattr(settings, "name", None) or "default"
        cfg = settings.as_dict() if callable(getattr(settings, "as_dict", None)) else settings
        if not isinstance(cfg, dict):
            raise TypeError(f"profile settings must be a mapping, got {type(cfg).__name__}")
        self.settings = dict(cfg)

        self.debug = _as_flag(self.get("BEHAVIOUR.DEBUG"), self.debug)
        self.max_digits = _as_digit_limit(self.get("BEHAVIOUR.MAX_DIGITS"))
        self.verify = _as_flag(self.get("BEHAVIOUR.VERIFY"), False)
        self.show_witnesses = _as_flag(self.get("DISPLAY.SHOW_WITNESSES"), False)

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup into the profile tables, e.g. 'SCAN.STOP'."""
        if not key:
            return default
        cur: Any = self.settings
        for part in key.split("."):
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


_current_runtime: ContextVar[Runtime | None] = ContextVar("mersenne_mr_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime with built-in defaults and return it."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    gmpy2 runs the Miller-Rabin loops and sympy enumerates exponents and
    backs --verify. Prints an install hint when either is missing; returns
    False in that case unless strict is off.
    """
    missing = [name for name in ("gmpy2", "sympy") if find_spec(name) is None]
    if not missing:
        return True

    print(
        f"{Fore.RED}{Style.BRIGHT}\nMissing dependencies:{Style.RESET_ALL} {', '.join(missing)}\n"
        f"Install with: {Fore.YELLOW}pip install {' '.join(missing)}{Style.RESET_ALL}"
    )
    return not strict
