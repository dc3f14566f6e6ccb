"""Pure helpers for approximating guest-language expressions.

Only a restricted arithmetic subset is ever evaluated: after known variable
values are substituted into the text, an expression consisting solely of
digits, ``+ - * / ( ) .`` and whitespace is computed numerically.  Nothing
here executes guest code.
"""

from __future__ import annotations

import ast
import json
import math
import re
from typing import Any

QUOTE_CHARS = frozenset({'"', "'", "`"})

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())

ARITHMETIC_PATTERN = re.compile(r"^[\d\s+\-*/().]+$")
NUMBER_PATTERN = re.compile(
    r"^(-?\d+(?:\.\d*)?|-?\.\d+)"
    r"(?:[iu](?:8|16|32|64|128|size)|f32|f64|[fFlLuU]{1,3})?$"
)
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_]\w*$")

_BINOPS = {
    ast.Add: lambda a, b: a + b,
    ast.Sub: lambda a, b: a - b,
    ast.Mult: lambda a, b: a * b,
    ast.Div: lambda a, b: a / b,
}


def split_top_level(text: str, separator: str) -> list[str]:
    """Split *text* on *separator* outside quotes and brackets."""
    parts: list[str] = []
    depth = 0
    quote = ""
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\" and quote != "`":
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in QUOTE_CHARS:
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif depth == 0 and text.startswith(separator, i):
            parts.append(text[start:i])
            i += len(separator)
            start = i
            continue
        i += 1
    parts.append(text[start:])
    return parts


def brace_delta(text: str) -> int:
    """Net count of ``{`` minus ``}`` outside string literals."""
    delta = 0
    quote = ""
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch == '"':
            quote = ch
        elif ch == "{":
            delta += 1
        elif ch == "}":
            delta -= 1
        i += 1
    return delta


def is_quoted(text: str) -> bool:
    """True when *text* is exactly one quoted literal (``"a" + "b"`` is not)."""
    if len(text) < 2 or text[0] not in QUOTE_CHARS:
        return False
    quote = text[0]
    i = 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and quote != "`":
            i += 2
            continue
        if ch == quote:
            return i == len(text) - 1
        i += 1
    return False


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


def unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text) and text[i + 1] in _ESCAPES:
            out.append(_ESCAPES[text[i + 1]])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def unquote(text: str) -> str:
    """Strip the quotes of a sole literal; backtick literals stay raw."""
    if not is_quoted(text):
        return text
    inner = text[1:-1]
    return inner if text[0] == "`" else unescape(inner)


def normalize_number(value: Any) -> Any:
    """Collapse integral floats to ints so ``4 / 2`` reads as ``2``."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def parse_number(text: str) -> int | float | None:
    """Parse a numeric literal, ignoring Rust/C++ type suffixes."""
    match = NUMBER_PATTERN.match(text.strip())
    if not match:
        return None
    digits = match.group(1)
    if "." in digits:
        return float(digits)
    return int(digits)


def _eval_node(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        operand = _eval_node(node.operand)
        return -operand if isinstance(node.op, ast.USub) else operand
    if isinstance(node, ast.BinOp) and type(node.op) in _BINOPS:
        return _BINOPS[type(node.op)](_eval_node(node.left), _eval_node(node.right))
    raise ValueError(f"unsupported arithmetic node: {type(node).__name__}")


def evaluate_arithmetic(text: str) -> int | float | None:
    """Evaluate a restricted arithmetic expression, or return ``None``."""
    if not ARITHMETIC_PATTERN.match(text) or not any(c.isdigit() for c in text):
        return None
    try:
        tree = ast.parse(text.strip(), mode="eval")
        return normalize_number(_eval_node(tree))
    except (SyntaxError, ValueError, ZeroDivisionError, OverflowError):
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def substitute_variables(text: str, variables: dict[str, Any]) -> str:
    """Replace numeric variable names in *text* with their values."""
    result = text
    for name in sorted(variables, key=len, reverse=True):
        value = variables[name]
        if not _is_number(value) or not IDENTIFIER_PATTERN.match(name):
            continue
        rendered = format_number(value)
        if value < 0:
            rendered = f"({rendered})"
        result = re.sub(rf"\b{re.escape(name)}\b", rendered, result)
    return result


def format_number(value: int | float) -> str:
    value = normalize_number(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return repr(value)
    return str(value)


def json_text(value: Any) -> str:
    """Stringify like ``JSON.stringify`` (compact separators)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def render_placeholders(template: str, args: list[str], lookup) -> str:
    """Fill ``{}`` / ``{:?}`` / ``{name}`` placeholders (Rust ``format!`` style).

    *lookup* resolves an argument or inline name to display text.
    """
    out: list[str] = []
    arg_iter = iter(args)
    i = 0
    while i < len(template):
        ch = template[i]
        if template.startswith("{{", i) or template.startswith("}}", i):
            out.append(ch)
            i += 2
            continue
        if ch == "{":
            end = template.find("}", i)
            if end == -1:
                out.append(template[i:])
                break
            inner = template[i + 1 : end].split(":", 1)[0].strip()
            if inner and not inner.isdigit():
                out.append(lookup(inner))
            else:
                nxt = next(arg_iter, None)
                out.append(lookup(nxt) if nxt is not None else "{}")
            i = end + 1
            continue
        out.append(ch)
        i += 1
    return "".join(out)


_PRINTF_VERB = re.compile(r"%%|%[-+# 0-9.]*[a-zA-Z]")


def render_printf(template: str, args: list[str], lookup) -> str:
    """Fill ``%d`` / ``%s`` / ``%v`` style verbs (Go ``Printf`` / C ``printf``)."""
    arg_iter = iter(args)

    def replace(match: re.Match) -> str:
        if match.group(0) == "%%":
            return "%"
        nxt = next(arg_iter, None)
        return lookup(nxt) if nxt is not None else match.group(0)

    return _PRINTF_VERB.sub(replace, template)
