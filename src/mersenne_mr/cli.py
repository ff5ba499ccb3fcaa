# src/mersenne_mr/cli.py

"""
Mersenne numbers and Miller-Rabin probable-prime testing from the shell.

usage: see mersenne-mr -h

Examples:
    mersenne-mr 2305843009213693951
    mersenne-mr check "2**89-1" --details
    mersenne-mr mersenne 127
    mersenne-mr modpow 4 13 497
    mersenne-mr scan 2 520
"""

from __future__ import annotations

import argparse
import os
import sys
import textwrap
import time
from importlib.resources import files as pkg_files

from colorama import Fore, Style
from colorama import init as colorama_init
from sympy import isprime as sympy_isprime

from mersenne_mr import __version__
from mersenne_mr import config as CONFIG
from mersenne_mr.expreval import min_decimal_digits, parse_unsigned
from mersenne_mr.fmt import format_duration, format_number, format_report, format_verdict
from mersenne_mr.mersenne import find_mersenne_primes, mersenne_candidates, mersenne_exponent, mersenne_number
from mersenne_mr.modpow import bmodpow
from mersenne_mr.primality import is_prime, miller_rabin_report
from mersenne_mr.progress import ScanProgress
from mersenne_mr.runtime import APPLY, CFG, ensure_runtime_deps
from mersenne_mr.runtime import current as _rt_current
from mersenne_mr.utility import UserInputError, dec_digits, flatten_dotted, typename
from mersenne_mr.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

COMMANDS = ("check", "mersenne", "modpow", "scan", "init", "where", "profiles")
_HOUSEKEEPING = ("init", "where", "profiles")


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not (msg.startswith("Invalid input:") or msg.startswith("Error:")):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _debug(msg: str) -> None:
    if _rt_current().debug:
        print(f"[debug] {msg}", file=sys.stderr)


def _label(name: str) -> str:
    return f"  {name + ':':<22}"


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      check N            Miller-Rabin test of N (default when N is given alone).
      mersenne P         Show 2^P - 1 and test it.
      modpow B E M       Compute B^E mod M by square-and-multiply.
      scan [START] STOP  Exponents p in [START, STOP) with 2^p - 1 probably prime.
      init [overwrite]   Create the workspace and copy the packaged profiles.
      where              Show the workspace and package paths.
      profiles           List the available profiles.

    numbers:
      123_456, 0xFF, M61 (= 2^61 - 1), 2**89-1, (1<<127)-1

    note:
      The witness bases are fixed by the digit count of N (3 .. digits+3).
      Verdicts are reproducible but not suitable for cryptographic use.
    """)

    p = argparse.ArgumentParser(
        prog="mersenne-mr",
        description="Mersenne numbers and Miller-Rabin probable-prime testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="command/number",
                   help="a command followed by its arguments, or a number to test")
    p.add_argument("--profile", default=None, help="Profile name from the workspace (default: 'default')")
    p.add_argument("--quiet", action="store_true", help="Bare results only, no progress bar")
    p.add_argument("--details", action="store_true", help="Show the n-1 decomposition and every witness")
    p.add_argument("--verify", action="store_true", help="Cross-check verdicts with sympy.isprime")
    p.add_argument("--all-exponents", action="store_true", help="scan: test composite exponents too")
    p.add_argument("--debug", action="store_true", help="Show timings, profile settings and tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (sys.argv if argv is None else argv) or _rt_current().debug
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


# ---- profile handling ----
def _apply_profile(explicit: str | None, debug_flag: bool) -> int | None:
    """Load and install the selected profile. Returns an exit code on failure."""
    ensure_workspace_seeded()

    if explicit and not CONFIG.has_profile(explicit):
        print(f"Unknown profile: '{explicit}'", file=sys.stderr)
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()), file=sys.stderr)
        return 2

    rt = _rt_current()
    name = explicit or "default"
    if CONFIG.has_profile(name):
        selected = CONFIG.load_settings(name)
        APPLY(selected)
        # --debug wins over the profile's BEHAVIOUR.DEBUG
        rt.debug = rt.debug or debug_flag
        _debug(f"active profile: {selected.name}")
        _debug(f"profile file: {selected._source}")
    else:
        _debug(f"profile '{name}' missing, using built-in defaults")

    limit = rt.max_digits
    if not os.environ.get("PYTHONINTMAXSTRDIGITS") and hasattr(sys, "set_int_max_str_digits"):
        sys.set_int_max_str_digits(max(limit, 640))

    _debug(f"digit limit: {rt.max_digits}, verify: {rt.verify}, show witnesses: {rt.show_witnesses}")
    if rt.debug:
        print("[debug] runtime settings (flattened):", file=sys.stderr)
        flat = flatten_dotted(rt.settings)
        for k in sorted(flat, key=str.lower):
            v = flat[k]
            print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
    return None


def _expect_args(cmd: str, args: list[str], lo: int, hi: int | None = None) -> None:
    hi = lo if hi is None else hi
    if not lo <= len(args) <= hi:
        want = str(lo) if lo == hi else f"{lo}-{hi}"
        raise UserInputError(f"'{cmd}' takes {want} argument(s), got {len(args)}. See mersenne-mr -h.")


# ---- commands ----
def _cmd_check(text: str, args) -> int:
    n = parse_unsigned(text)
    rt = _rt_current()
    details = args.details or rt.show_witnesses

    t0 = time.perf_counter()
    if details:
        report = miller_rabin_report(n)
        verdict = report.probable_prime
    else:
        report = None
        verdict = is_prime(n)
    _debug(f"miller-rabin took {format_duration(time.perf_counter() - t0)}")

    if args.quiet:
        print("prime" if verdict else "composite")
        return 0

    print(f"{Fore.CYAN}{Style.BRIGHT}Number statistics:{Style.RESET_ALL}")
    print(f"{_label('Input')}{text}")
    print(f"{_label('Number')}{Fore.YELLOW}{format_number(n)}{Style.RESET_ALL}")
    print(f"{_label('Digits')}{dec_digits(n)}")
    p = mersenne_exponent(n)
    if p is not None and p >= 2:
        print(f"{_label('Mersenne')}2^{p} - 1")
    print(f"{_label('Prime')}{format_verdict(verdict)}")

    if report is not None:
        for line in format_report(report):
            print(line)

    if args.verify or rt.verify:
        _print_cross_check(n, verdict)
    return 0


def _print_cross_check(n: int, verdict: bool) -> None:
    t0 = time.perf_counter()
    expected = bool(sympy_isprime(n))
    _debug(f"sympy.isprime took {format_duration(time.perf_counter() - t0)}")
    if expected == verdict:
        print(f"{_label('Cross-check')}{Fore.GREEN}sympy.isprime agrees{Style.RESET_ALL}")
    else:
        print(
            f"{_label('Cross-check')}{Fore.YELLOW}{Style.BRIGHT}sympy.isprime says "
            f"{'prime' if expected else 'composite'}{Style.RESET_ALL}"
        )


def _cmd_mersenne(text: str, args) -> int:
    p = parse_unsigned(text, "exponent")
    rt = _rt_current()
    limit = rt.max_digits
    if min_decimal_digits(p) > limit:
        raise UserInputError(
            f"2^{p} - 1 has more than {limit} decimal digits. "
            "Increase BEHAVIOUR.MAX_DIGITS in the profile or pass a smaller exponent."
        )
    n = mersenne_number(p)
    verdict = is_prime(n)

    if args.quiet:
        print(format_number(n))
        return 0

    print(f"{Fore.CYAN}{Style.BRIGHT}Mersenne number M{p} = 2^{p} - 1{Style.RESET_ALL}")
    print(f"{_label('Number')}{Fore.YELLOW}{format_number(n)}{Style.RESET_ALL}")
    print(f"{_label('Digits')}{dec_digits(n)}")
    print(f"{_label('Prime')}{format_verdict(verdict)}")
    if args.verify or rt.verify:
        _print_cross_check(n, verdict)
    return 0


def _cmd_modpow(items: list[str], args) -> int:
    base, exponent, modulus = (parse_unsigned(s, lbl) for s, lbl in zip(items, ("base", "exponent", "modulus")))
    if modulus == 0 and base != 0:
        raise UserInputError("modulus must not be zero.")
    result = bmodpow(base, exponent, modulus)
    if args.quiet:
        print(format_number(result))
        return 0
    print(f"{_label('Result')}{Fore.YELLOW}{format_number(result)}{Style.RESET_ALL}")
    return 0


def _cmd_scan(items: list[str], args) -> int:
    if len(items) == 2:
        start, stop = (parse_unsigned(s, "exponent") for s in items)
    elif len(items) == 1:
        start, stop = int(CFG("SCAN.START", 2)), parse_unsigned(items[0], "exponent")
    else:
        start, stop = int(CFG("SCAN.START", 2)), int(CFG("SCAN.STOP", 128))

    prime_only = not args.all_exponents and bool(CFG("SCAN.PRIME_EXPONENTS_ONLY", True))
    total = len(mersenne_candidates(start, stop, prime_exponents=prime_only))
    show_progress = not args.quiet and bool(CFG("SCAN.PROGRESS", True)) and sys.stdout.isatty()
    bar = ScanProgress(total, enabled=show_progress)
    hits: list[int] = []

    def on_step(done: int, _total: int, p: int) -> None:
        bar.update(done, p, len(hits))

    for p in find_mersenne_primes(start, stop, prime_exponents=prime_only, on_step=on_step):
        hits.append(p)
    bar.clear()
    _debug(f"scan of {total} exponent(s) took {format_duration(bar.elapsed())}")

    if args.quiet:
        for p in hits:
            print(p)
        return 0

    print(f"{Fore.CYAN}{Style.BRIGHT}Mersenne primes 2^p - 1 for {start} <= p < {stop}:{Style.RESET_ALL}")
    for p in hits:
        print(f"  M{p:<8} {dec_digits(mersenne_number(p))} digits")
    print(f"{len(hits)} found among {total} exponent(s) tested.")
    return 0


def _cmd_housekeeping(cmd: str, items: list[str]) -> int:
    if cmd == "init":
        overwrite = items == ["overwrite"]
        if items and not overwrite:
            raise UserInputError("usage: mersenne-mr init [overwrite]")
        ws, copied = seed_workspace(overwrite=overwrite)
        suffix = " (overwrote existing files)" if overwrite else ""
        print(f"Workspace ready at: {ws}{suffix}")
        print(f"Copied -> profiles: {copied.get('profiles', 0)}")
        return 0

    if cmd == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('mersenne_mr')}")
        return 0

    ensure_workspace_seeded()
    for name, desc in CONFIG.list_profiles_with_descriptions():
        print(f"  {Fore.YELLOW}{name:<16}{Style.RESET_ALL} {desc}")
    return 0


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)

    if not ensure_runtime_deps(strict=True):
        return 1

    if not args.items:
        parser.print_help()
        return 0

    cmd, rest = args.items[0].lower(), args.items[1:]
    if cmd not in COMMANDS:
        # bare number: same as 'check N'
        cmd, rest = "check", args.items

    if cmd in _HOUSEKEEPING:
        return _cmd_housekeeping(cmd, rest)

    rc = _apply_profile(args.profile, args.debug)
    if rc is not None:
        return rc

    if cmd == "check":
        _expect_args(cmd, rest, 1)
        return _cmd_check(rest[0], args)
    if cmd == "mersenne":
        _expect_args(cmd, rest, 1)
        return _cmd_mersenne(rest[0], args)
    if cmd == "modpow":
        _expect_args(cmd, rest, 3)
        return _cmd_modpow(rest, args)
    _expect_args(cmd, rest, 0, 2)
    return _cmd_scan(rest, args)


if __name__ == "__main__":
    raise SystemExit(main())
