"""Binary and unary operators.

Numbers are int and float, never bool. Strings (and command output standing in
for a string) concatenate with `+` and order lexicographically. Integer `/`
floors; any division or remainder by zero raises DivisionByZero. An int too large
to mix with a float is a runtime error, not a Python OverflowError.
"""

import operator

from ysh import EvaluatorFn, Value
from ysh.errors import DivisionByZero, ShellRuntimeError, TypeMismatch
from ysh.evaluation.context import EvalContext
from ysh.syntax.nodes import BinaryOp, UnaryOp
from ysh.syntax.span import Span
from ysh.types.closure import Closure
from ysh.types.environment import Environment
from ysh.types.values import is_number, text_of, type_name

ORDERING = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _mismatch(op: str, left: Value, right: Value, span: Span | None) -> TypeMismatch:
    return TypeMismatch(f"cannot apply '{op}' to {type_name(left)} and {type_name(right)}", span)


def values_equal(left: Value, right: Value) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, Closure) or isinstance(right, Closure):
        return left is right
    left_text, right_text = text_of(left), text_of(right)
    if left_text is not None and right_text is not None and (isinstance(left, str) or isinstance(right, str)):
        return left_text == right_text
    return type(left) is type(right) and left == right


def arithmetic(op: str, left: Value, right: Value, span: Span | None = None) -> Value:
    if op == "+":
        left_text, right_text = text_of(left), text_of(right)
        if left_text is not None and right_text is not None:
            return left_text + right_text
    if not (is_number(left) and is_number(right)):
        raise _mismatch(op, left, right, span)
    try:
        return _numeric(op, left, right, span)
    except OverflowError:
        raise ShellRuntimeError(f"result of '{op}' is out of range", span) from None


def _numeric(op: str, left: Value, right: Value, span: Span | None) -> Value:
    match op:
        case "+":
            return left + right
        case "-":
            return left - right
        case "*":
            return left * right
        case "/":
            if right == 0:
                raise DivisionByZero("division by zero", span)
            if isinstance(left, int) and isinstance(right, int):
                return left // right
            return left / right
        case "%":
            if right == 0:
                raise DivisionByZero("remainder by zero", span)
            return left % right
    raise _mismatch(op, left, right, span)


def compare(op: str, left: Value, right: Value, span: Span | None = None) -> bool:
    if op == "==":
        return values_equal(left, right)
    if op == "!=":
        return not values_equal(left, right)
    if is_number(left) and is_number(right):
        return ORDERING[op](left, right)
    left_text, right_text = text_of(left), text_of(right)
    if left_text is not None and right_text is not None:
        return ORDERING[op](left_text, right_text)
    raise _mismatch(op, left, right, span)


def _require_bool(op: str, value: Value, span: Span | None) -> bool:
    if not isinstance(value, bool):
        raise TypeMismatch(f"'{op}' needs Bool operands, found {type_name(value)}", span)
    return value


def binary_form(node: BinaryOp, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    op = node.op
    if op in ("&&", "||"):
        left = _require_bool(op, evaluate_fn(node.left, env, context), node.left.span)
        # short-circuit
        if (op == "&&" and not left) or (op == "||" and left):
            return left
        return _require_bool(op, evaluate_fn(node.right, env, context), node.right.span)

    left = evaluate_fn(node.left, env, context)
    right = evaluate_fn(node.right, env, context)
    if op in ("==", "!=") or op in ORDERING:
        return compare(op, left, right, node.span)
    return arithmetic(op, left, right, node.span)


def unary_form(node: UnaryOp, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    value = evaluate_fn(node.operand, env, context)
    if node.op == "!":
        return not _require_bool("!", value, node.span)
    if not is_number(value):
        raise TypeMismatch(f"cannot negate {type_name(value)}", node.span)
    return -value
