# tests/test_cli.py
"""
Tests for the command line, number-argument parsing, profiles and formatting.

Run: pytest -v
"""

from __future__ import annotations

import pytest

from mersenne_mr import config
from mersenne_mr.cli import main
from mersenne_mr.expreval import parse_int_or_expr, parse_unsigned
from mersenne_mr.fmt import abbr_int_fast, format_number, strip_ansi
from mersenne_mr.runtime import APPLY, CFG, DEFAULT_MAX_DIGITS, Runtime, current
from mersenne_mr.utility import UserInputError, flatten_dotted, stringify_guarded
from mersenne_mr.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

M61 = 2305843009213693951

# ---------- helpers -----------------------------------------------------------


def run(capsys, *argv: str) -> tuple[int, str, str]:
    rc = main(list(argv))
    out, err = capsys.readouterr()
    return rc, strip_ansi(out), strip_ansi(err)


# ---------- number arguments --------------------------------------------------

PARSE_CASES = [
    ("13", 13),
    ("+13", 13),
    ("-13", -13),
    ("1_000_000", 1_000_000),
    ("1 000 000", 1_000_000),
    ("1,000", 1000),
    ("0xff", 255),
    ("0b1010", 10),
    ("M61", M61),
    ("m5", 31),
    ("2**61-1", M61),
    ("(1<<61)-1", M61),
    ("2**10 // 3 % 7", 341 % 7),
    ("  97  ", 97),
]


@pytest.mark.parametrize(("text", "expected"), PARSE_CASES)
def test_parse_int_or_expr(text, expected):
    assert parse_int_or_expr(text) == expected


@pytest.mark.parametrize("text", [
    "3.14", "abc", "", "__import__('os')", "2**-1", "1//0", "5 % 0", "1 << -1", "True", "2 if 1 else 3",
])
def test_parse_int_or_expr_rejects(text):
    with pytest.raises(UserInputError):
        parse_int_or_expr(text)


def test_parse_respects_digit_limit():
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 50}})
    with pytest.raises(UserInputError, match="more than 50 decimal digits"):
        parse_int_or_expr("2**1000")
    with pytest.raises(UserInputError):
        parse_int_or_expr("1 << 1000")
    with pytest.raises(UserInputError):
        parse_int_or_expr("M1000")
    with pytest.raises(UserInputError):
        parse_int_or_expr("9" * 51)
    assert parse_int_or_expr("9" * 50) == 10 ** 50 - 1


@pytest.mark.parametrize("text", [
    "(10**40)**2",
    "10**30 * 10**30",
    "(10**20 * 10**20) * 10**20",
    "10**30 << 100",
    "-(10**30) * 10**30",
])
def test_parse_rejects_oversized_intermediate_results(text):
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 50}})
    with pytest.raises(UserInputError, match="more than 50 decimal digits"):
        parse_int_or_expr(text)


def test_parse_allows_products_within_digit_limit():
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 50}})
    assert parse_int_or_expr("10**20 * 10**20") == 10 ** 40
    assert parse_int_or_expr("(10**10)**4") == 10 ** 40
    assert parse_int_or_expr("0 * 10**40") == 0
    assert parse_int_or_expr("1**100000") == 1


def test_parse_huge_power_fails_fast_at_default_limit():
    with pytest.raises(UserInputError, match="more than 100000 decimal digits"):
        parse_int_or_expr("(10**99999)**30000")


def test_grouped_literals_respect_digit_limit():
    assert parse_int_or_expr("1" + ",000" * 1500) == 10 ** 4500
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 50}})
    with pytest.raises(UserInputError, match="more than 50 decimal digits"):
        parse_int_or_expr("1" + ",000" * 17)
    assert parse_int_or_expr("1" + ",000" * 16) == 10 ** 48


def test_parse_unsigned_rejects_negative():
    assert parse_unsigned("7") == 7
    with pytest.raises(UserInputError, match="non-negative"):
        parse_unsigned("-7")


# ---------- runtime & profiles -----------------------------------------------


def test_runtime_dotted_lookup_and_debug_sync():
    rt = Runtime()
    rt.apply({"BEHAVIOUR": {"DEBUG": True, "MAX_DIGITS": 10}, "TOP": 1})
    assert rt.debug is True
    assert rt.get("BEHAVIOUR.MAX_DIGITS") == 10
    assert rt.get("BEHAVIOUR.MISSING", "x") == "x"
    assert rt.get("TOP") == 1
    assert rt.get("") is None


def test_runtime_syncs_typed_fields_from_profile():
    rt = Runtime()
    assert (rt.max_digits, rt.verify, rt.show_witnesses) == (DEFAULT_MAX_DIGITS, False, False)
    rt.apply({"BEHAVIOUR": {"MAX_DIGITS": 500, "VERIFY": True}, "DISPLAY": {"SHOW_WITNESSES": True}})
    assert (rt.max_digits, rt.verify, rt.show_witnesses) == (500, True, True)
    # a later profile without the keys falls back to the defaults
    rt.apply({"DISPLAY": {"HEAD": 5}})
    assert (rt.max_digits, rt.verify, rt.show_witnesses) == (DEFAULT_MAX_DIGITS, False, False)


@pytest.mark.parametrize("bad", [0, -5, "lots", True, 1.5])
def test_runtime_ignores_unusable_digit_limits(bad):
    rt = Runtime()
    rt.apply({"BEHAVIOUR": {"MAX_DIGITS": bad}})
    assert rt.max_digits == DEFAULT_MAX_DIGITS


def test_runtime_profile_debug_does_not_clear_flag_when_absent():
    rt = Runtime(debug=True)
    rt.apply({"BEHAVIOUR": {"VERIFY": "yes"}})
    assert rt.debug is True
    assert rt.verify is False


def test_runtime_rejects_non_mapping_settings():
    with pytest.raises(TypeError):
        Runtime().apply(["BEHAVIOUR"])


def test_digit_limit_is_read_from_runtime():
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 3}})
    assert current().max_digits == 3
    assert parse_int_or_expr("999") == 999
    with pytest.raises(UserInputError, match="more than 3 decimal digits"):
        parse_int_or_expr("1000")
    with pytest.raises(UserInputError, match="more than 3 decimal digits"):
        stringify_guarded(1000)


def test_cfg_reads_applied_settings():
    assert CFG("DISPLAY.HEAD", 99) == 99
    APPLY({"DISPLAY": {"HEAD": 5}})
    assert CFG("DISPLAY.HEAD", 99) == 5


def test_seed_workspace_copies_packaged_profiles(isolated_workspace):
    root, seeded, copied = ensure_workspace_seeded()
    assert root == workspace_dir() == isolated_workspace.resolve()
    assert seeded is True
    assert copied["profiles"] >= 2
    assert (root / "profiles" / "default.toml").is_file()
    # second run copies nothing, overwrite copies again
    assert ensure_workspace_seeded()[1] is False
    assert seed_workspace(overwrite=True)[1]["profiles"] == copied["profiles"]


def test_load_settings_strips_profile_metadata():
    ensure_workspace_seeded()
    settings = config.load_settings("crosscheck")
    assert settings.name == "crosscheck"
    assert "sympy" in settings.description
    assert "_PROFILE_" not in settings.data
    assert settings.data["BEHAVIOUR"]["VERIFY"] is True
    assert config.has_profile("default")
    assert config.list_all_profiles() == ["crosscheck", "default"]
    names = [name for name, _ in config.list_profiles_with_descriptions()]
    assert names == ["crosscheck", "default"]


def test_load_settings_errors(isolated_workspace):
    ensure_workspace_seeded()
    with pytest.raises(FileNotFoundError):
        config.load_settings("nope")
    (isolated_workspace / "profiles" / "broken.toml").write_text("[BEHAVIOUR\nDEBUG = 1\n", encoding="utf-8")
    with pytest.raises(UserInputError, match="broken.toml"):
        config.load_settings("broken")
    listed = dict(config.list_profiles_with_descriptions())
    assert listed["broken"] == "(unreadable)"


def test_flatten_dotted():
    assert flatten_dotted({"A": {"B": 1, "C": {"D": 2}}, "E": 3}) == {"A.B": 1, "A.C.D": 2, "E": 3}


# ---------- formatting --------------------------------------------------------


def test_abbr_int_fast():
    assert abbr_int_fast(12345) == "12345"
    assert abbr_int_fast(0) == "0"
    assert abbr_int_fast(10 ** 50 + 7, head=3, tail=3, threshold=10) == "100…007"


def test_format_number_abbreviates_large_mersenne_numbers():
    assert format_number(M61) == str(M61)
    APPLY({"DISPLAY": {"ABBREVIATE_OVER": 30, "HEAD": 5, "TAIL": 5, "ELLIPSIS": "..."}})
    assert format_number(2 ** 127 - 1) == "17014...05727"
    assert format_number(10 ** 40) == "10000...00000"


def test_stringify_guarded():
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 10}})
    assert stringify_guarded(12345) == "12345"
    with pytest.raises(UserInputError):
        stringify_guarded(10 ** 20)


# ---------- CLI -------------------------------------------------------------


def test_cli_bare_number_is_checked(capsys):
    rc, out, _ = run(capsys, "13")
    assert rc == 0
    assert "Number statistics:" in out
    assert "probably prime" in out


def test_cli_check_quiet(capsys):
    assert run(capsys, "check", "21", "--quiet")[1].strip() == "composite"
    assert run(capsys, "check", "M61", "--quiet")[1].strip() == "prime"
    assert run(capsys, "check", "2**89-1", "--quiet")[1].strip() == "prime"


def test_cli_check_shows_mersenne_exponent(capsys):
    rc, out, _ = run(capsys, "check", str(M61))
    assert rc == 0
    assert "2^61 - 1" in out
    assert "19" in out


def test_cli_check_details(capsys):
    rc, out, _ = run(capsys, "check", "561", "--details")
    assert rc == 0
    assert "composite" in out
    assert "n-1 = 2^4 * 35" in out
    assert "Witness 3" in out
    assert "exhausted" in out


def test_cli_verify_with_sympy(capsys):
    rc, out, _ = run(capsys, "check", "97", "--verify")
    assert rc == 0
    assert "sympy.isprime agrees" in out


def test_cli_crosscheck_profile(capsys):
    rc, out, _ = run(capsys, "check", "13", "--profile", "crosscheck")
    assert rc == 0
    assert "Witness 5" in out
    assert "sympy.isprime agrees" in out


def test_cli_unknown_profile(capsys):
    rc, _, err = run(capsys, "check", "13", "--profile", "nope")
    assert rc == 2
    assert "Unknown profile: 'nope'" in err


def test_cli_mersenne(capsys):
    rc, out, _ = run(capsys, "mersenne", "61", "--quiet")
    assert rc == 0
    assert out.strip() == str(M61)
    rc, out, _ = run(capsys, "mersenne", "11")
    assert "M11 = 2^11 - 1" in out
    assert "2047" in out
    assert "composite" in out


def test_cli_mersenne_digit_limit(capsys):
    rc, _, err = run(capsys, "mersenne", "10000000")
    assert rc == 2
    assert "decimal digits" in err


def test_cli_modpow(capsys):
    rc, out, _ = run(capsys, "modpow", "4", "13", "497", "--quiet")
    assert rc == 0
    assert out.strip() == "445"
    assert run(capsys, "modpow", "0", "0", "1", "--quiet")[1].strip() == "1"
    assert "Result:" in run(capsys, "modpow", "2", "10", "1000")[1]


def test_cli_modpow_bad_arguments(capsys):
    assert run(capsys, "modpow", "1", "2")[0] == 2
    rc, _, err = run(capsys, "modpow", "2", "3", "0")
    assert rc == 2
    assert "modulus" in err


def test_cli_scan(capsys):
    rc, out, _ = run(capsys, "scan", "2", "32", "--quiet")
    assert rc == 0
    assert out.split() == ["2", "3", "5", "7", "13", "17", "19", "31"]

    rc, out, _ = run(capsys, "scan", "2", "20")
    assert "M13" in out
    assert "7 found among 8 exponent(s) tested." in out


def test_cli_scan_all_exponents(capsys):
    rc, out, _ = run(capsys, "scan", "1", "8", "--quiet", "--all-exponents")
    assert rc == 0
    assert out.split() == ["2", "3", "5", "7"]


def test_cli_invalid_number(capsys):
    rc, _, err = run(capsys, "check", "not_a_number")
    assert rc == 2
    assert "Invalid input" in err


def test_cli_oversized_expression_is_a_user_error(capsys):
    rc, _, err = run(capsys, "check", "(10**99999)**30000")
    assert rc == 2
    assert "more than 100000 decimal digits" in err


def test_cli_debug_traces(capsys):
    rc, _, err = run(capsys, "check", "13", "--debug")
    assert rc == 0
    assert "[debug] active profile: default" in err
    assert "BEHAVIOUR.MAX_DIGITS" in err
    assert "[debug] miller-rabin took" in err
    assert "[debug] digit limit: 100000, verify: False" in err
    assert current().debug is True


def test_cli_housekeeping(capsys, isolated_workspace):
    rc, out, _ = run(capsys, "init")
    assert rc == 0
    assert "Workspace ready at:" in out
    assert (isolated_workspace / "profiles" / "crosscheck.toml").is_file()

    rc, out, _ = run(capsys, "init", "overwrite")
    assert "overwrote existing files" in out

    rc, out, _ = run(capsys, "where")
    assert str(isolated_workspace.resolve()) in out

    rc, out, _ = run(capsys, "profiles")
    assert "crosscheck" in out
    assert "default" in out


def test_cli_no_arguments_prints_help(capsys):
    rc, out, _ = run(capsys)
    assert rc == 0
    assert "usage: mersenne-mr" in out
