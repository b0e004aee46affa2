from __future__ import annotations

import math
from typing import List

from lark import Tree

from ..types import AwkDivisionByZero, AwkRuntimeError, AwkValue, Frame, compare_values
from .common import EvalFunc, dynamic_regex, match_record, token_text


def power(x: float, y: float) -> float:
    try:
        return math.pow(x, y)
    except OverflowError:
        if x < 0 and y == int(y) and int(y) % 2:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 to a negative power, or a negative base with a fractional exponent
        return math.inf if x == 0 else math.nan


def apply_arith(op: str, lhs: AwkValue, rhs: AwkValue) -> AwkValue:
    x, y = lhs.to_num(), rhs.to_num()

    match op:
        case '+':
            return AwkValue.from_num(x + y)
        case '-':
            return AwkValue.from_num(x - y)
        case '*':
            return AwkValue.from_num(x * y)
        case '/':
            if y == 0:
                raise AwkDivisionByZero('/')
            return AwkValue.from_num(x / y)
        case '%':
            if y == 0:
                raise AwkDivisionByZero('%')
            try:
                return AwkValue.from_num(math.fmod(x, y))
            except ValueError:
                return AwkValue.from_num(math.nan)
        case '^':
            return AwkValue.from_num(power(x, y))
        case _:
            raise AwkRuntimeError(f"unknown arithmetic operator '{op}'")


def eval_arith(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    lhs_node, op_tok, rhs_node = n.children
    lhs = eval_func(lhs_node, frame)
    rhs = eval_func(rhs_node, frame)
    return apply_arith(token_text(op_tok), lhs, rhs)


def eval_power(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    base, exponent = n.children
    lhs = eval_func(base, frame)
    rhs = eval_func(exponent, frame)
    return AwkValue.from_num(power(lhs.to_num(), rhs.to_num()))


def eval_unary(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    op_tok, operand = n.children
    val = eval_func(operand, frame)

    match token_text(op_tok):
        case '-':
            return AwkValue.from_num(-val.to_num())
        case '+':
            return AwkValue.from_num(val.to_num())
        case '!':
            return AwkValue.from_bool(not val.truthy())
        case op:
            raise AwkRuntimeError(f"unknown unary operator '{op}'")


def eval_concat(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    convfmt = frame.state.convfmt()
    parts: List[str] = []

    for child in n.children:
        parts.append(eval_func(child, frame).to_str(convfmt))

    return AwkValue.from_str(''.join(parts))


_COMPARATORS = {
    '<': lambda c: c < 0,
    '<=': lambda c: c <= 0,
    '==': lambda c: c == 0,
    '!=': lambda c: c != 0,
    '>': lambda c: c > 0,
    '>=': lambda c: c >= 0,
}


def eval_compare(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    lhs_node, op_tok, rhs_node = n.children
    lhs = eval_func(lhs_node, frame)
    rhs = eval_func(rhs_node, frame)
    cmp = compare_values(lhs, rhs, frame.state.convfmt())
    return AwkValue.from_bool(_COMPARATORS[token_text(op_tok)](cmp))


def eval_match(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    lhs_node, op_tok, rhs_node = n.children
    text = eval_func(lhs_node, frame).to_str(frame.state.convfmt())
    found = dynamic_regex(rhs_node, frame, eval_func).search(text) is not None

    if token_text(op_tok) == '!~':
        found = not found

    return AwkValue.from_bool(found)


def eval_regex(n: Tree, frame: Frame) -> AwkValue:
    """A bare /ERE/ in expression position matches against $0."""
    return AwkValue.from_bool(match_record(frame, token_text(n.children[0])))


def eval_logical(kind: str, n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    lhs_node, rhs_node = n.children
    lhs = eval_func(lhs_node, frame).truthy()

    if kind == 'and':
        if not lhs:
            return AwkValue.from_bool(False)
    elif lhs:
        return AwkValue.from_bool(True)

    return AwkValue.from_bool(eval_func(rhs_node, frame).truthy())


def eval_ternary(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    cond, then_node, else_node = n.children

    if eval_func(cond, frame).truthy():
        return eval_func(then_node, frame)

    return eval_func(else_node, frame)
