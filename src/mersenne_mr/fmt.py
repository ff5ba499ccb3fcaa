# -----------------------------------------------------------------------------
#  Formatting helpers for console output
# -----------------------------------------------------------------------------

from __future__ import annotations

import re

from colorama import Fore, Style

from mersenne_mr.mersenne import abbr_mersenne_number, mersenne_exponent
from mersenne_mr.primality import PrimalityReport, WitnessOutcome
from mersenne_mr.runtime import CFG
from mersenne_mr.utility import dec_digits, stringify_guarded

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(s: str | None) -> str:
    return _ANSI_RE.sub("", s or "")


def abbr_int_fast(n: int, head: int = 10, tail: int = 10, threshold: int = 35, ellipsis: str = "…") -> str:
    """Abbreviate very large ints as first<head>…last<tail> without str(n)."""
    if n == 0:
        return "0"

    # If not long enough, fall back to normal str()
    d = dec_digits(n)
    if d <= threshold or head + tail >= d:
        return stringify_guarded(n)

    first = n // 10 ** (d - head)
    last = n % 10 ** tail
    return f"{first}{ellipsis}{last:0{tail}d}"


def format_number(n: int) -> str:
    """Render n for display, abbreviated per the DISPLAY.* profile settings."""
    threshold = int(CFG("DISPLAY.ABBREVIATE_OVER", 60))
    head = int(CFG("DISPLAY.HEAD", 20))
    tail = int(CFG("DISPLAY.TAIL", 20))
    ellipsis = str(CFG("DISPLAY.ELLIPSIS", "…"))

    p = mersenne_exponent(n)
    if p is not None and p > 0 and dec_digits(n) > max(threshold, head + tail):
        # leading digits from logarithms, no big division needed
        return abbr_mersenne_number(p, k=min(head, tail), ellipsis=ellipsis)
    return abbr_int_fast(n, head=head, tail=tail, threshold=threshold, ellipsis=ellipsis)


def format_duration(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f} µs"
    if seconds < 1:
        return f"{seconds * 1e3:.1f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    m, s = divmod(seconds, 60)
    return f"{int(m)} min {s:.0f} s"


def format_verdict(probable_prime: bool) -> str:
    if probable_prime:
        return f"{Fore.GREEN}{Style.BRIGHT}probably prime{Style.RESET_ALL}"
    return f"{Fore.RED}composite{Style.RESET_ALL}"


_OUTCOME_COLOR = {
    WitnessOutcome.PROBABLE: Fore.GREEN,
    WitnessOutcome.NONTRIVIAL_ROOT: Fore.RED,
    WitnessOutcome.EXHAUSTED: Fore.RED,
}


def format_report(report: PrimalityReport) -> list[str]:
    """Lines describing how the verdict was reached."""
    lines = [f"  Reason:               {report.reason}"]
    if report.trials is None:
        return lines

    lines.append(
        f"  Decomposition:        n-1 = 2^{report.trials} * {abbr_int_fast(report.exponent)}"
    )
    for w in report.witnesses:
        color = _OUTCOME_COLOR[w.outcome]
        lines.append(
            f"  Witness {w.base:<13} {color}{w.outcome.value}{Style.RESET_ALL}"
            f" after {w.squarings} squaring(s)"
        )
    return lines
