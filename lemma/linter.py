"""Structural-query linter over tree-sitter trees."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from tree_sitter import Query, QueryCursor

from .constants import Language, to_language
from .trace_types import IssueType, LinterIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LintRule:
    language: Language
    query: str
    issue_type: IssueType
    message: Callable[[str], str]


RULES: tuple[LintRule, ...] = (
    LintRule(
        language=Language.JAVASCRIPT,
        query='(call_expression function: (identifier) @eval-func (#eq? @eval-func "eval"))',
        issue_type=IssueType.SECURITY,
        message=lambda _: "`eval()` can be dangerous and should be avoided.",
    ),
    LintRule(
        language=Language.JAVASCRIPT,
        query="(variable_declaration (variable_declarator name: (identifier) @var-decl))",
        issue_type=IssueType.STYLE,
        message=lambda name: f"Prefer 'const' or 'let' over 'var' for declaration '{name}'.",
    ),
    LintRule(
        language=Language.JAVASCRIPT,
        query='(binary_expression operator: ["==" "!="] @loose-eq)',
        issue_type=IssueType.STYLE,
        message=lambda op: f"Loose comparison '{op}' coerces types; prefer '{op}='.",
    ),
    LintRule(
        language=Language.PYTHON,
        query="(assert_statement) @assert",
        issue_type=IssueType.PERF,
        message=lambda _: (
            "`assert` statements are removed in optimized runs; "
            "use exceptions for checks."
        ),
    ),
    LintRule(
        language=Language.PYTHON,
        query='(call function: (identifier) @dyn-exec (#match? @dyn-exec "^(eval|exec)$"))',
        issue_type=IssueType.SECURITY,
        message=lambda name: f"`{name}()` runs arbitrary code and should be avoided.",
    ),
    LintRule(
        language=Language.GO,
        query='(call_expression function: (identifier) @panic-call (#eq? @panic-call "panic"))',
        issue_type=IssueType.STYLE,
        message=lambda _: "Prefer returning an error over calling `panic()`.",
    ),
    LintRule(
        language=Language.RUST,
        query="(unsafe_block) @unsafe",
        issue_type=IssueType.SECURITY,
        message=lambda _: "`unsafe` block opts out of the compiler's memory-safety checks.",
    ),
    LintRule(
        language=Language.RUST,
        query=(
            "(call_expression function: (field_expression field: "
            '(field_identifier) @unwrap (#eq? @unwrap "unwrap")))'
        ),
        issue_type=IssueType.STYLE,
        message=lambda _: "`.unwrap()` panics on `None`/`Err`; handle the failure case.",
    ),
    LintRule(
        language=Language.CPP,
        query=(
            "(call_expression function: (identifier) @unbounded "
            '(#match? @unbounded "^(gets|strcpy|strcat|sprintf)$"))'
        ),
        issue_type=IssueType.SECURITY,
        message=lambda name: f"`{name}` does not check buffer bounds.",
    ),
    LintRule(
        language=Language.CPP,
        query="(using_declaration) @using",
        issue_type=IssueType.STYLE,
        message=lambda text: f"Avoid `{text.rstrip(';')}` in global scope.",
    ),
)


def _node_text(node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def _run_rule(rule: LintRule, root, grammar: Any) -> list[LinterIssue]:
    query = Query(grammar, rule.query)
    cursor = QueryCursor(query)
    issues: list[LinterIssue] = []
    for _pattern_index, captures in cursor.matches(root):
        for nodes in captures.values():
            for node in nodes:
                issues.append(
                    LinterIssue(
                        type=rule.issue_type,
                        message=rule.message(_node_text(node)),
                        line=node.start_point[0] + 1,
                    )
                )
    return issues


def lint(
    tree_or_node,
    grammar: Any,
    language: str,
    rules: tuple[LintRule, ...] = RULES,
) -> list[LinterIssue]:
    """Run every rule for *language* and collect the resulting issues.

    A rule that fails (bad query, binding error) is logged and contributes
    nothing; the remaining rules still run.
    """
    lang = to_language(language)
    root = getattr(tree_or_node, "root_node", tree_or_node)
    issues: list[LinterIssue] = []
    for rule in (r for r in rules if r.language == lang):
        try:
            issues.extend(_run_rule(rule, root, grammar))
        except Exception:
            logger.warning(
                "Linter query failed for %s: %s", lang.value, rule.query, exc_info=True
            )
    logger.debug("Linter found %d issues for %s", len(issues), lang.value)
    return issues
