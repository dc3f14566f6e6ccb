"""BaseLineSimulator — language-agnostic line-pattern execution approximation."""

from __future__ import annotations

import logging
import re
from typing import Any

from .. import constants
from ..expressions import (
    brace_delta,
    evaluate_arithmetic,
    format_number,
    is_quoted,
    json_text,
    parse_number,
    render_placeholders,
    split_top_level,
    substitute_variables,
    unquote,
)
from ..trace_types import LineStep

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


class BaseLineSimulator:
    """Base class for the line-pattern heuristic simulators.

    The source is scanned one physical line at a time.  Each line is split
    into statements, and each statement is matched against the subclass's
    patterns for control headers, output calls and variable bindings.
    Anything that matches none of them is skipped.  Subclasses override the
    pattern and literal constants where the guest language differs.
    """

    # ── overridable constants ────────────────────────────────────

    LANGUAGE: constants.Language

    COMMENT_PREFIXES: tuple[str, ...] = ("//",)

    # ``None`` means top-level code runs; otherwise only the entry function body.
    ENTRY_PATTERN: re.Pattern | None = None

    CONTROL_PATTERN: re.Pattern = re.compile(r"^(?:else\s+)?(?:if|for|while)\b")

    BINDING_PATTERNS: tuple[re.Pattern, ...] = (
        re.compile(r"^([A-Za-z_]\w*)\s*=(?!=)\s*(.+)$"),
    )
    AUGMENTED_PATTERN: re.Pattern = re.compile(r"^([A-Za-z_]\w*)\s*([+\-*/])=\s*(.+)$")
    INCREMENT_PATTERN: re.Pattern | None = re.compile(r"^([A-Za-z_]\w*)\s*(\+\+|--)$")

    TRUE_LITERAL: str = "true"
    FALSE_LITERAL: str = "false"
    NONE_LITERAL: str = "null"

    STATEMENT_SEPARATOR: str = ";"

    # ── init ─────────────────────────────────────────────────────

    def __init__(self):
        self.variables: dict[str, Any] = {}
        self.outputs: list[str] = []
        self._steps: list[LineStep] = []
        self._in_entry = self.ENTRY_PATTERN is None
        self._entry_done = False
        self._depth = 0
        self._opened = False

    # ── driver ───────────────────────────────────────────────────

    def simulate(self, code: str) -> list[LineStep]:
        """Produce the line steps for *code*. One instance per run."""
        for index, raw in enumerate(code.split("\n")):
            text = raw.strip()
            if not text or text.startswith(self.COMMENT_PREFIXES):
                continue
            line_number = index + 1
            if self._entry_done:
                break
            if not self._in_entry:
                if self.ENTRY_PATTERN is not None and self.ENTRY_PATTERN.search(text):
                    self._enter(text, line_number)
                continue
            self._process_line(text, line_number)
            self._track_braces(text)

        logger.debug(
            "Line simulation (%s): %d steps, %d outputs",
            self.LANGUAGE.value,
            len(self._steps),
            len(self.outputs),
        )
        return self._steps

    def _enter(self, header: str, line_number: int):
        self._in_entry = True
        self._emit(line_number, [], entry=True)
        brace = header.find("{")
        if brace != -1:
            self._opened = True
            self._process_line(header[brace + 1 :], line_number)
        self._track_braces(header)

    def _track_braces(self, text: str):
        if self.ENTRY_PATTERN is None:
            return
        self._depth += brace_delta(text)
        if self._depth > 0:
            self._opened = True
        elif self._opened:
            self._entry_done = True

    def _process_line(self, text: str, line_number: int):
        for raw in split_top_level(text, self.STATEMENT_SEPARATOR):
            statement = self._clean_statement(raw)
            if not statement:
                continue
            if self.CONTROL_PATTERN.match(statement):
                # The header covers the whole line; loop bodies are not expanded.
                self._emit(line_number, [])
                return
            self.process_statement(statement, line_number)

    @staticmethod
    def _clean_statement(raw: str) -> str:
        statement = raw.strip().rstrip(";").strip()
        while statement.startswith("}"):
            statement = statement[1:].lstrip()
        while statement.endswith("}") and brace_delta(statement) < 0:
            statement = statement[:-1].rstrip()
        return statement

    def process_statement(self, statement: str, line_number: int) -> bool:
        """Match one statement and emit its step. Returns whether it matched."""
        logs = self.render_output(statement)
        if logs is not None:
            self.outputs.extend(logs)
            self._emit(line_number, logs)
            return True
        if self.apply_binding(statement) is not None:
            self._emit(line_number, [])
            return True
        if self.is_bare_call(statement):
            self._emit(line_number, [])
            return True
        return False

    def _emit(self, line_number: int, logs: list[str], entry: bool = False):
        scope: dict[str, Any] = {**self.variables, constants.LOG_KEY: list(logs)}
        if not entry:
            scope[constants.FINAL_OUTPUT_KEY] = "\n".join(self.outputs)
        self._steps.append(LineStep(step=len(self._steps), line=line_number, scope=scope))

    # ── statement recognizers ────────────────────────────────────

    def render_output(self, statement: str) -> list[str] | None:
        """Return the output lines a print statement produces, or ``None``."""
        return None

    def is_bare_call(self, statement: str) -> bool:
        return False

    def match_binding(self, statement: str) -> tuple[str, str] | None:
        for pattern in self.BINDING_PATTERNS:
            match = pattern.match(statement)
            if match:
                return match.group(1), match.group(2).strip()
        return None

    def apply_binding(self, statement: str) -> str | None:
        """Update ``variables`` from an assignment-like statement.

        Returns the bound name, or ``None`` when *statement* binds nothing.
        """
        augmented = self.AUGMENTED_PATTERN.match(statement)
        if augmented:
            name, op, expr = augmented.groups()
            self.variables[name] = self._combine(name, op, expr.strip())
            return name
        if self.INCREMENT_PATTERN is not None:
            increment = self.INCREMENT_PATTERN.match(statement)
            if increment:
                name, op = increment.groups()
                self.variables[name] = self._combine(name, op[0], "1")
                return name
        binding = self.match_binding(statement)
        if binding is None:
            return None
        name, expr = binding
        self.variables[name] = self.resolve(expr)
        return name

    def _combine(self, name: str, op: str, expr: str) -> Any:
        current = self.variables.get(name, _UNRESOLVED)
        rhs = self._resolve(expr)
        if current is _UNRESOLVED or rhs is _UNRESOLVED:
            return f"{name} {op} {expr}"
        if op == "+" and (isinstance(current, str) or isinstance(rhs, str)):
            return self.to_text(current) + self.to_text(rhs)
        if self._is_number(current) and self._is_number(rhs):
            result = evaluate_arithmetic(
                f"{format_number(current)} {op} ({format_number(rhs)})"
            )
            if result is not None:
                return result
        return f"{self.to_text(current)} {op} {expr}"

    # ── values ───────────────────────────────────────────────────

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def parse_literal(self, text: str) -> Any:
        if is_quoted(text):
            return unquote(text)
        if text == self.TRUE_LITERAL:
            return True
        if text == self.FALSE_LITERAL:
            return False
        if text == self.NONE_LITERAL:
            return None
        number = parse_number(text)
        return _UNRESOLVED if number is None else number

    def resolve_call(self, text: str) -> Any:
        """Evaluate a language-specific formatting/conversion call."""
        return _UNRESOLVED

    def _resolve(self, text: str) -> Any:
        text = text.strip()
        if not text:
            return ""
        literal = self.parse_literal(text)
        if literal is not _UNRESOLVED:
            return literal
        if text in self.variables:
            return self.variables[text]
        if text.startswith("(") and text.endswith(")") and is_balanced(text[1:-1]):
            inner = self._resolve(text[1:-1])
            if inner is not _UNRESOLVED:
                return inner
        called = self.resolve_call(text)
        if called is not _UNRESOLVED:
            return called
        concatenated = self._concatenate(text)
        if concatenated is not _UNRESOLVED:
            return concatenated
        arithmetic = evaluate_arithmetic(substitute_variables(text, self.variables))
        if arithmetic is not None:
            return arithmetic
        return _UNRESOLVED

    def _concatenate(self, text: str) -> Any:
        parts = split_top_level(text, "+")
        if len(parts) < 2 or any(not p.strip() for p in parts):
            return _UNRESOLVED
        values = [self._resolve(p) for p in parts]
        if any(v is _UNRESOLVED for v in values):
            return _UNRESOLVED
        if not any(isinstance(v, str) for v in values):
            return _UNRESOLVED
        return "".join(self.to_text(v) for v in values)

    def resolve(self, text: str) -> Any:
        """Best-effort value of *text*; unresolvable expressions stay as text."""
        value = self._resolve(text)
        return text.strip() if value is _UNRESOLVED else value

    def to_text(self, value: Any) -> str:
        """Render a value the way the guest language would print it."""
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return self.TRUE_LITERAL if value else self.FALSE_LITERAL
        if value is None:
            return self.NONE_LITERAL
        if isinstance(value, (int, float)):
            return format_number(value)
        return json_text(value)

    def display(self, expr: str) -> str:
        return self.to_text(self.resolve(expr))

    def split_arguments(self, args: str) -> list[str]:
        if not args.strip():
            return []
        return [a.strip() for a in split_top_level(args, ",")]

    def format_template(self, template_expr: str, args: list[str]) -> str:
        """``{}``-placeholder formatting (Rust macros, Python ``str.format``)."""
        template = unquote(template_expr.strip())
        return render_placeholders(template, args, self.display)


def is_balanced(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
