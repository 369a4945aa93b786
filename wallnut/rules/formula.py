"""Restricted arithmetic expressions over project field paths.

Formulas are parsed with :mod:`ast` and only a small whitelist of nodes is
accepted: numeric literals, dotted field paths, ``+ - * / // % **``, unary
signs, parentheses and the functions ``min``, ``max``, ``abs`` and
``round``.  Nothing is ever passed to ``eval``.
"""

from __future__ import annotations

import ast
import functools
import math
import operator
from typing import Any, Callable

from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot, resolve


class FormulaError(ValueError):
    """The expression is not a valid restricted formula."""


class UnresolvedFieldError(LookupError):
    """A field referenced by the formula has no usable value."""

    def __init__(self, path: str, reason: str = "not found") -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path


_BINARY_OPS: dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: lambda a, b: operator.pow(float(a), b),
}

_UNARY_OPS: dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

def _round(value: float, digits: float | None = None) -> float:
    if digits is None:
        return round(value)
    if digits != int(digits):
        raise FormulaError(f"round() digits must be a whole number, got {digits!r}")
    return round(value, int(digits))


_FUNCTIONS: dict[str, Callable[..., float]] = {
    "min": min,
    "max": max,
    "abs": abs,
    "round": _round,
}

_ARITY: dict[str, tuple[int, int]] = {
    "min": (2, 32),
    "max": (2, 32),
    "abs": (1, 1),
    "round": (1, 2),
}


def _dotted_name(node: ast.expr) -> str | None:
    """Return ``a.b.c`` for a Name/Attribute chain, else None."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if isinstance(node, ast.Name):
        parts.append(node.id)
        return ".".join(reversed(parts))
    return None


def _check(node: ast.AST) -> None:
    if isinstance(node, ast.Expression):
        _check(node.body)
    elif isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"Unsupported literal: {node.value!r}")
    elif isinstance(node, ast.BinOp):
        if type(node.op) not in _BINARY_OPS:
            raise FormulaError(f"Unsupported operator: {type(node.op).__name__}")
        _check(node.left)
        _check(node.right)
    elif isinstance(node, ast.UnaryOp):
        if type(node.op) not in _UNARY_OPS:
            raise FormulaError(f"Unsupported operator: {type(node.op).__name__}")
        _check(node.operand)
    elif isinstance(node, ast.Call):
        name = node.func.id if isinstance(node.func, ast.Name) else None
        if name not in _FUNCTIONS or node.keywords:
            raise FormulaError("Only min(), max(), abs() and round() calls are allowed")
        low, high = _ARITY[name]
        if not low <= len(node.args) <= high:
            raise FormulaError(f"{name}() takes {low} to {high} arguments")
        for arg in node.args:
            _check(arg)
    elif isinstance(node, (ast.Name, ast.Attribute)):
        if _dotted_name(node) is None:
            raise FormulaError("Unsupported field reference")
    else:
        raise FormulaError(f"Unsupported syntax: {type(node).__name__}")


@functools.lru_cache(maxsize=512)
def parse_formula(expression: str) -> ast.Expression:
    """Parse and vet *expression*; raises FormulaError when it is not allowed."""
    if not isinstance(expression, str) or not expression.strip():
        raise FormulaError("Empty formula")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as exc:
        raise FormulaError(f"Invalid formula {expression!r}: {exc.msg}") from exc
    _check(tree)
    return tree


def formula_fields(expression: str) -> list[str]:
    """Field paths referenced by *expression*, in order of appearance."""
    tree = parse_formula(expression)
    fields: list[str] = []

    def visit(node: ast.AST) -> None:
        if isinstance(node, (ast.Name, ast.Attribute)):
            path = _dotted_name(node)
            if path and path not in fields:
                fields.append(path)
            return
        if isinstance(node, ast.Call):
            for arg in node.args:
                visit(arg)
            return
        for child in ast.iter_child_nodes(node):
            visit(child)

    visit(tree)
    return fields


def _number(path: str, value: Any) -> float:
    if value is NOT_FOUND:
        raise UnresolvedFieldError(path)
    if value is None:
        raise UnresolvedFieldError(path, "is null")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UnresolvedFieldError(path, f"is not numeric ({value!r})")
    return float(value)


def _eval(node: ast.AST, snapshot: ProjectSnapshot) -> float:
    if isinstance(node, ast.Expression):
        return _eval(node.body, snapshot)
    if isinstance(node, ast.Constant):
        return node.value
    if isinstance(node, ast.BinOp):
        return _BINARY_OPS[type(node.op)](_eval(node.left, snapshot), _eval(node.right, snapshot))
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_eval(node.operand, snapshot))
    if isinstance(node, ast.Call):
        args = [_eval(arg, snapshot) for arg in node.args]
        return _FUNCTIONS[node.func.id](*args)  # type: ignore[attr-defined]
    path = _dotted_name(node)  # type: ignore[arg-type]
    return _number(path, resolve(path, snapshot))  # type: ignore[arg-type]


def evaluate_formula(expression: str, snapshot: ProjectSnapshot) -> float:
    """Evaluate *expression* against *snapshot*.

    Raises
    ------
    FormulaError
        The expression is malformed or its result is not a finite number.
    UnresolvedFieldError
        A referenced field is missing, null or non-numeric.
    ZeroDivisionError
        The expression divides by zero.
    """
    tree = parse_formula(expression)
    try:
        result = _eval(tree, snapshot)
        if not isinstance(result, complex):
            result = float(result)
    except OverflowError as exc:
        raise FormulaError(f"Formula {expression!r} overflowed") from exc
    if isinstance(result, complex) or not math.isfinite(result):
        raise FormulaError(f"Formula {expression!r} did not produce a finite number")
    return result
