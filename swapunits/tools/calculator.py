"""
Calculator tool — the small four-function calculator beside the converter.

Safe evaluation through a restricted AST walk; only arithmetic is allowed.
Results are rounded to 7 decimal places, matching the converter's precision.
"""

import ast
import logging
import math
import operator

logger = logging.getLogger(__name__)

PRECISION = 7
ERROR = "Error"
MAX_EXPONENT = 1000


def _power(base, exponent):
    """Float power: a nested power overflows instead of building a huge int."""
    return float(base) ** exponent


# Safe operators for eval
SAFE_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _power,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def _safe_eval(node):
    """Recursively evaluate an AST node with only safe math operations."""
    if isinstance(node, ast.Expression):
        return _safe_eval(node.body)
    elif isinstance(node, ast.Constant):
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return node.value
        raise ValueError(f"Unsupported constant: {node.value!r}")
    elif isinstance(node, ast.BinOp):
        op_type = type(node.op)
        if op_type not in SAFE_OPS:
            raise ValueError(f"Unsupported operator: {op_type.__name__}")
        left = _safe_eval(node.left)
        right = _safe_eval(node.right)
        if op_type is ast.Pow and abs(right) > MAX_EXPONENT:
            raise ValueError(f"Exponent too large: {right}")
        return SAFE_OPS[op_type](left, right)
    elif isinstance(node, ast.UnaryOp):
        op_type = type(node.op)
        if op_type not in SAFE_OPS:
            raise ValueError(f"Unsupported unary operator: {op_type.__name__}")
        return SAFE_OPS[op_type](_safe_eval(node.operand))
    else:
        raise ValueError(f"Unsupported expression: {type(node).__name__}")


def display(result: float) -> str:
    """Shortest form of the result rounded to PRECISION places."""
    rounded = round(result, PRECISION)
    if rounded.is_integer() and abs(rounded) < 1e21:
        return str(int(rounded))
    return repr(rounded)


class CalculatorTool:
    """Safe arithmetic evaluator."""

    def evaluate(self, expression: str) -> float:
        """
        Evaluate an arithmetic expression.
        Supports: +, -, *, /, //, %, ** and parentheses; ^, × and ÷ are accepted.
        Raises ValueError on anything else, including division by zero.
        """
        cleaned = expression.strip()
        cleaned = cleaned.replace("^", "**").replace("×", "*").replace("÷", "/")
        if not cleaned:
            raise ValueError("Empty expression")

        try:
            tree = ast.parse(cleaned, mode="eval")
            result = float(_safe_eval(tree))
        except ZeroDivisionError as e:
            raise ValueError("Division by zero") from e
        except (SyntaxError, TypeError, OverflowError) as e:
            raise ValueError(f"Could not evaluate '{expression}': {e}") from e

        if not math.isfinite(result):
            raise ValueError(f"Result is not finite: {result}")
        return result

    def run(self, expression: str) -> str:
        """Evaluate for display: the rounded result, or 'Error'."""
        try:
            result = self.evaluate(expression)
        except ValueError as e:
            logger.debug("Calculator failed for '%s': %s", expression, e)
            return ERROR
        logger.debug("Calculator: %s = %s", expression, result)
        return display(result)
