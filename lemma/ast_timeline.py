"""AST-pattern heuristic strategy: symbolic execution timeline from a syntax tree.

Pass 1 collects declarations (functions other than ``main``, classes,
structs and types).  Pass 2 finds the entry point and classifies each
executable statement of its body into a phase.  Both passes use explicit
worklists rather than recursion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from . import constants
from .simulators import BaseLineSimulator, get_line_simulator
from .trace_types import ExecutionContext, NodeStep, Phase

logger = logging.getLogger(__name__)

ENTRY_FUNCTION_NAME = "main"

_COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment"})
_NAME_LEAF_TYPES = frozenset(
    {"identifier", "field_identifier", "type_identifier", "destructor_name"}
)


@dataclass(frozen=True)
class NodeTypeTable:
    """Grammar node types the timeline recognizes for one language."""

    function_types: frozenset[str]
    # node type -> noun used in the description ("class", "struct", ...)
    type_declarations: dict[str, str]
    declaration_verb: str
    block_types: frozenset[str]
    assignment_types: frozenset[str]
    # assignment-like types that may appear without an initializer
    declaration_types: frozenset[str]
    call_types: frozenset[str]
    loop_types: frozenset[str]
    condition_types: frozenset[str]
    return_types: frozenset[str]
    skipped_types: frozenset[str] = field(default_factory=frozenset)


PYTHON_TABLE = NodeTypeTable(
    function_types=frozenset({"function_definition"}),
    type_declarations={"class_definition": "class"},
    declaration_verb="Define",
    block_types=frozenset({"block"}),
    assignment_types=frozenset({"assignment", "augmented_assignment"}),
    declaration_types=frozenset({"assignment"}),
    call_types=frozenset({"call"}),
    loop_types=frozenset({"for_statement", "while_statement"}),
    condition_types=frozenset({"if_statement", "match_statement"}),
    return_types=frozenset({"return_statement"}),
    skipped_types=frozenset(
        {
            "function_definition",
            "class_definition",
            "decorated_definition",
            "import_statement",
            "import_from_statement",
            "future_import_statement",
        }
    ),
)

GO_TABLE = NodeTypeTable(
    function_types=frozenset({"function_declaration", "method_declaration"}),
    type_declarations={"type_declaration": "type"},
    declaration_verb="Declare",
    block_types=frozenset({"block", "statement_list"}),
    assignment_types=frozenset(
        {
            "assignment_statement",
            "short_var_declaration",
            "inc_statement",
            "dec_statement",
            "var_declaration",
            "const_declaration",
        }
    ),
    declaration_types=frozenset({"var_declaration", "const_declaration"}),
    call_types=frozenset({"call_expression"}),
    loop_types=frozenset({"for_statement"}),
    condition_types=frozenset(
        {"if_statement", "expression_switch_statement", "type_switch_statement"}
    ),
    return_types=frozenset({"return_statement"}),
)

RUST_TABLE = NodeTypeTable(
    function_types=frozenset({"function_item"}),
    type_declarations={
        "struct_item": "struct",
        "enum_item": "enum",
        "trait_item": "trait",
    },
    declaration_verb="Define",
    block_types=frozenset({"block"}),
    assignment_types=frozenset(
        {"let_declaration", "assignment_expression", "compound_assignment_expr"}
    ),
    declaration_types=frozenset({"let_declaration"}),
    call_types=frozenset({"call_expression", "macro_invocation"}),
    loop_types=frozenset({"for_expression", "while_expression", "loop_expression"}),
    condition_types=frozenset({"if_expression", "match_expression"}),
    return_types=frozenset({"return_expression"}),
)

CPP_TABLE = NodeTypeTable(
    function_types=frozenset({"function_definition"}),
    type_declarations={"class_specifier": "class", "struct_specifier": "struct"},
    declaration_verb="Define",
    block_types=frozenset({"compound_statement"}),
    assignment_types=frozenset(
        {"declaration", "assignment_expression", "update_expression"}
    ),
    declaration_types=frozenset({"declaration"}),
    call_types=frozenset({"call_expression"}),
    loop_types=frozenset(
        {"for_statement", "while_statement", "do_statement", "for_range_loop"}
    ),
    condition_types=frozenset({"if_statement", "switch_statement"}),
    return_types=frozenset({"return_statement"}),
)

NODE_TYPE_TABLES: dict[constants.Language, NodeTypeTable] = {
    constants.Language.PYTHON: PYTHON_TABLE,
    constants.Language.GO: GO_TABLE,
    constants.Language.RUST: RUST_TABLE,
    constants.Language.CPP: CPP_TABLE,
}


def _text(node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def _snippet(node) -> str:
    return _text(node).split("\n")[0].strip()


def _statement_text(node) -> str:
    return " ".join(_text(node).split()).rstrip(";").strip()


def _first_identifier(node) -> str | None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in _NAME_LEAF_TYPES:
            return _text(current)
        stack.extend(reversed(current.named_children))
    return None


def _declared_name(node) -> str | None:
    """Name of a function/type definition, following C-style declarator chains."""
    name = node.child_by_field_name("name")
    if name is not None:
        return _text(name)
    declarator = node.child_by_field_name("declarator")
    while declarator is not None:
        if declarator.type in _NAME_LEAF_TYPES:
            return _text(declarator)
        if declarator.type in ("qualified_identifier", "operator_name"):
            return _text(declarator)
        inner = declarator.child_by_field_name("declarator")
        if inner is None:
            return _first_identifier(declarator)
        declarator = inner
    if node.type == "type_declaration":
        for spec in node.named_children:
            spec_name = spec.child_by_field_name("name")
            if spec_name is not None:
                return _text(spec_name)
    return None


class AstTimelineBuilder:
    """Builds ``NodeStep``s for one syntax tree. One instance per run."""

    def __init__(self, language: str):
        self._language = constants.to_language(language)
        table = NODE_TYPE_TABLES.get(self._language)
        if table is None:
            raise ValueError(f"Unsupported language for AST timeline: {language}")
        self._table = table
        self._simulator: BaseLineSimulator = get_line_simulator(self._language.value)
        self._steps: list[NodeStep] = []

    # ── step emission ────────────────────────────────────────────

    def _emit(self, node, phase: Phase, description: str, logs: list[str] | None = None):
        variables: dict[str, Any] = dict(self._simulator.variables)
        if logs is not None:
            variables[constants.LOG_KEY] = list(logs)
            variables[constants.FINAL_OUTPUT_KEY] = "\n".join(self._simulator.outputs)
        self._steps.append(
            NodeStep(
                step=len(self._steps),
                node=node,
                execution_context=ExecutionContext(
                    phase=phase,
                    description=description,
                    line_number=node.start_point[0] + 1,
                    code_snippet=_snippet(node),
                    variables=variables,
                ),
            )
        )

    # ── pass 1: declarations ─────────────────────────────────────

    def _collect_declarations(self, root):
        verb = self._table.declaration_verb
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in self._table.function_types:
                name = _declared_name(node)
                if name and name != ENTRY_FUNCTION_NAME:
                    kind = "method" if node.type == "method_declaration" else "function"
                    self._emit(node, Phase.DECLARATION, f"{verb} {kind} {name}")
            elif node.type in self._table.type_declarations:
                has_body = node.type == "type_declaration" or (
                    node.child_by_field_name("body") is not None
                )
                name = _declared_name(node)
                if name and has_body:
                    noun = self._table.type_declarations[node.type]
                    self._emit(node, Phase.DECLARATION, f"{verb} {noun} {name}")
            stack.extend(reversed(node.children))

    # ── pass 2: entry point and body ─────────────────────────────

    def _is_main_guard(self, node) -> bool:
        if self._language != constants.Language.PYTHON or node.type != "if_statement":
            return False
        condition = node.child_by_field_name("condition")
        return condition is not None and "__name__" in _text(condition)

    def find_entry_point(self, root):
        """First ``main`` function (or Python ``__main__`` guard) in source order."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in self._table.function_types:
                if _declared_name(node) == ENTRY_FUNCTION_NAME:
                    return node
            if self._is_main_guard(node):
                return node
            stack.extend(reversed(node.children))
        return None

    def _entry_body(self, entry):
        if entry.type == "if_statement":
            return entry.child_by_field_name("consequence")
        return entry.child_by_field_name("body")

    def executable_statements(self, body) -> list:
        statements = []
        stack = list(reversed(body.named_children))
        while stack:
            node = stack.pop()
            if node.type in self._table.block_types:
                stack.extend(reversed(node.named_children))
                continue
            if node.type in _COMMENT_TYPES or node.type in self._table.skipped_types:
                continue
            statements.append(node)
        return statements

    @staticmethod
    def _unwrap(node):
        if node.type == "expression_statement" and node.named_child_count > 0:
            return node.named_children[0]
        return node

    @staticmethod
    def _call_target(node) -> str:
        function = node.child_by_field_name("function")
        if function is not None:
            return _text(function)
        macro = node.child_by_field_name("macro")
        if macro is not None:
            return f"{_text(macro)}!"
        return _statement_text(node).split("<<")[0].split("(")[0].strip()

    def _classify(self, statement):
        table = self._table
        inner = self._unwrap(statement)
        text = _statement_text(statement)

        logs = self._simulator.render_output(text)
        if logs is not None:
            self._simulator.outputs.extend(logs)
            self._emit(statement, Phase.CALL, f"Call {self._call_target(inner)}", logs)
            return

        if inner.type in table.assignment_types:
            if inner.type in table.declaration_types and "=" not in text:
                name = _first_identifier(inner) or "variable"
                self._emit(statement, Phase.INITIALIZATION, f"Declare {name}")
                return
            name = self._simulator.apply_binding(text)
            if name is not None:
                value = self._simulator.to_text(self._simulator.variables[name])
                self._emit(statement, Phase.ASSIGNMENT, f"Assign {value} to {name}")
            else:
                target = _first_identifier(inner) or "variable"
                self._emit(statement, Phase.ASSIGNMENT, f"Assign to {target}")
            return

        if inner.type in table.call_types:
            self._emit(statement, Phase.CALL, f"Call function {self._call_target(inner)}")
        elif inner.type in table.loop_types:
            self._emit(statement, Phase.LOOP, "Execute loop")
        elif inner.type in table.condition_types:
            self._emit(statement, Phase.CONDITION, "Evaluate condition")
        elif inner.type in table.return_types:
            self._emit(statement, Phase.RETURN, "Return from main")
        else:
            self._emit(statement, Phase.EXECUTION, f"Execute {inner.type}")

    def build(self, tree_or_node) -> list[NodeStep]:
        root = getattr(tree_or_node, "root_node", tree_or_node)
        self._collect_declarations(root)

        entry = self.find_entry_point(root)
        body = None
        if entry is not None:
            if entry.type == "if_statement":
                label = "__main__ block"
            else:
                label = _declared_name(entry) or ENTRY_FUNCTION_NAME
            self._emit(entry, Phase.EXECUTION, f"Start execution of {label}")
            body = self._entry_body(entry)
        elif self._language == constants.Language.PYTHON:
            # Scripts without main() run top to bottom.
            self._emit(root, Phase.EXECUTION, "Start execution of module")
            body = root

        if body is not None:
            for statement in self.executable_statements(body):
                self._classify(statement)

        logger.debug(
            "AST timeline (%s): %d steps, entry=%s",
            self._language.value,
            len(self._steps),
            entry.type if entry is not None else None,
        )
        return self._steps


def build_ast_timeline(tree_or_node, language: str) -> list[NodeStep]:
    return AstTimelineBuilder(language).build(tree_or_node)
