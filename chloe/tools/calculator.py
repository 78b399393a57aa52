"""
Arithmetic evaluation without ``eval``.

Expressions are parsed with ``ast`` and only numeric literals, unary +/-
and the binary operators + - * / // % ** are evaluated.
"""

from __future__ import annotations

import ast
import math
import operator
from typing import Any

from chloe.errors import ToolExecutionFailed
from chloe.tools.base import SideChannel, Tool, require_str
from chloe.tools.names import ToolName

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 1000
MAX_EXPRESSION_LENGTH = 200


def _evaluate(node: ast.AST) -> float | int:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _evaluate(node.left)
        right = _evaluate(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ToolExecutionFailed("Exponent too large")
        return _BINARY_OPS[type(node.op)](left, right)
    raise ToolExecutionFailed("Unsupported expression. Use arithmetic like '2 + 2' or '(10 * 5) / 3'")


def evaluate_expression(expression: str) -> float | int:
    """Evaluate an arithmetic expression string."""
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ToolExecutionFailed("Expression too long")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ToolExecutionFailed(f"Invalid expression: {expression}", cause=e) from e

    try:
        result = _evaluate(tree)
    except ZeroDivisionError as e:
        raise ToolExecutionFailed("Division by zero", cause=e) from e
    except OverflowError as e:
        raise ToolExecutionFailed("Result too large", cause=e) from e

    if isinstance(result, float) and (math.isnan(result) or math.isinf(result)):
        raise ToolExecutionFailed("Result is not a finite number")
    return result


def _format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class CalculatorTool(Tool):
    name = ToolName.CALCULATE.value
    description = "Perform mathematical calculations. Supports basic arithmetic operations."
    parameters_schema = {
        "type": "object",
        "properties": {
            "expression": {
                "type": "string",
                "description": "The mathematical expression to evaluate (e.g., '2 + 2', '10 * 5')",
            },
        },
        "required": ["expression"],
    }

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        expression = require_str(parameters, "expression").strip()
        result = evaluate_expression(expression)
        return f"{expression} = {_format_number(result)}"
