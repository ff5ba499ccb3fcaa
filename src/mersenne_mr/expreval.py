"""
Parsing of number arguments given on the command line.

Accepts plain decimal literals (with '_' or grouped separators), 0x/0b/0o
literals, the M<p> shorthand for the Mersenne number 2^p - 1, and safe
integer expressions such as 2**61-1 or (1<<89)-1.
"""

from __future__ import annotations

import ast
import operator as op
import re

from mersenne_mr.mersenne import mersenne_number
from mersenne_mr.runtime import current as current_runtime
from mersenne_mr.utility import UserInputError, dec_digits, parse_decimal

_THIN_SPACES = ("\u2009", "\u202F", "\u00A0")  # thin, narrow no-break, no-break
_SEP_CLASS = r"[ ,._\u00A0\u2009\u202F]"
_GROUPED_RE = re.compile(rf"^\+?\d{{1,3}}(?:{_SEP_CLASS}\d{{3}})+$")
_MERSENNE_RE = re.compile(r"^[Mm](\d+)$")

_ALLOWED_BINOPS = {
    ast.Add:      op.add,
    ast.Sub:      op.sub,
    ast.Mult:     op.mul,
    ast.FloorDiv: op.floordiv,
    ast.Mod:      op.mod,
    ast.LShift:   op.lshift,
    ast.RShift:   op.rshift,
}
_ALLOWED_UNARYOPS = {
    ast.UAdd: op.pos,
    ast.USub: op.neg,
}

_MAX_NODES = 256


class _IntExprError(Exception):
    pass


def _max_digits() -> int:
    return current_runtime().max_digits


def _too_many_digits(limit: int) -> UserInputError:
    return UserInputError(
        f"number has more than {limit} decimal digits. "
        "Increase BEHAVIOUR.MAX_DIGITS in the profile or pass a smaller value."
    )


def min_decimal_digits(bits: int) -> int:
    """Fewest decimal digits of an integer with `bits` bits (0.30102 < log10 2)."""
    if bits <= 1:
        return 1
    return 1 + ((bits - 1) * 30102) // 100000


def _check_result_size(op_type: type, left: int, right: int, limit: int) -> None:
    """Reject *, ** and << whose result must exceed `limit` digits, before computing it."""
    a, b = abs(left), abs(right)
    if op_type is ast.Pow:
        if a <= 1 or right <= 0:
            return
        bits = (a.bit_length() - 1) * right + 1
    elif op_type is ast.Mult:
        if a == 0 or b == 0:
            return
        bits = a.bit_length() + b.bit_length() - 1
    elif op_type is ast.LShift:
        if a == 0 or right <= 0:
            return
        bits = a.bit_length() + right
    else:
        return
    if min_decimal_digits(bits) > limit:
        raise _too_many_digits(limit)


def _eval_int_expr(expr: str) -> int:
    """
    Evaluate a *safe* integer expression.

    Allowed: integer literals, parentheses, + - * // % ** << >>, unary +/-.
    Disallowed: names, calls, attributes, floats, negative exponents.
    BEHAVIOUR.MAX_DIGITS is checked against a lower bound on the size of
    every product, power and left shift before it is computed, and against
    the final value.
    """
    limit = _max_digits()
    try:
        tree = ast.parse(expr, mode="eval")
    except SyntaxError as e:
        raise _IntExprError("invalid integer expression") from e

    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise _IntExprError("expression too large")

    def _eval(node) -> int:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, int):
                raise _IntExprError("only integer literals are allowed")
            return node.value

        if isinstance(node, ast.UnaryOp) and type(node.op) in _ALLOWED_UNARYOPS:
            return _ALLOWED_UNARYOPS[type(node.op)](_eval(node.operand))

        if isinstance(node, ast.BinOp):
            op_type = type(node.op)
            left = _eval(node.left)
            right = _eval(node.right)

            if op_type is ast.Pow and right < 0:
                raise UserInputError("negative exponents are not allowed in integer expressions")
            _check_result_size(op_type, left, right, limit)

            if op_type is ast.Pow:
                return pow(left, right)

            if op_type in (ast.FloorDiv, ast.Mod) and right == 0:
                raise UserInputError("division by zero in integer expression")

            if op_type in _ALLOWED_BINOPS:
                try:
                    return _ALLOWED_BINOPS[op_type](left, right)
                except ValueError as e:  # negative shift count
                    raise UserInputError(str(e)) from None

        raise _IntExprError(f"unsupported syntax: {type(node).__name__}")

    value = _eval(tree.body)
    if dec_digits(value) > limit:
        raise _too_many_digits(limit)
    return value


def _decimal_digits(digits: str) -> int:
    if len(digits) > _max_digits():
        raise _too_many_digits(_max_digits())
    return parse_decimal(digits)


def _parse_int_literal(text: str) -> int | None:
    """Accepts: 42  +7  1_000_000  0xFF  0b1010  123.456.789  123 456 789
       Rejects: 3.14  1,23  12.34.56  0xG1"""
    s = text.strip()
    if not s:
        return None

    for ch in _THIN_SPACES:
        s = s.replace(ch, " ")

    if s.lower().startswith(("0x", "0b", "0o")):
        try:
            return int(s.replace("_", ""), 0)
        except ValueError:
            return None

    if re.fullmatch(r"[+-]?\d[\d_]*", s):
        value = _decimal_digits(s.lstrip("+-").replace("_", ""))
        return -value if s.startswith("-") else value

    if _GROUPED_RE.match(s):
        return _decimal_digits(re.sub(_SEP_CLASS, "", s).lstrip("+"))

    return None


def parse_int_or_expr(s: str) -> int:
    """
    Turn a command-line number argument into an int.
    Raises UserInputError when the text is not an acceptable integer.
    """
    text = (s or "").strip()

    m = _MERSENNE_RE.match(text)
    if m:
        p = parse_decimal(m.group(1))
        if min_decimal_digits(p) > _max_digits():
            raise _too_many_digits(_max_digits())
        return mersenne_number(p)

    n = _parse_int_literal(text)
    if n is not None:
        return n

    try:
        return _eval_int_expr(text)
    except _IntExprError:
        raise UserInputError(f"Invalid input: '{s}' is not an integer or integer expression.") from None


def parse_unsigned(s: str, label: str = "number") -> int:
    n = parse_int_or_expr(s)
    if n < 0:
        raise UserInputError(f"Invalid input: {label} must be non-negative, got {s!r}.")
    return n
