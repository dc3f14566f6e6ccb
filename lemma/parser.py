"""Tree-Sitter Parsing Layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any

import tree_sitter

from . import constants
from .errors import GrammarUnavailable
from .trace_types import ParseError

logger = logging.getLogger(__name__)

ERROR_NODE_TYPE = "ERROR"


class GrammarFactory(ABC):
    """Abstract factory for obtaining a language grammar."""

    @abstractmethod
    def get_language(self, language: str) -> Any: ...


class TreeSitterGrammarFactory(GrammarFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_language(self, language: str) -> Any:
        import tree_sitter_language_pack as tslp

        return tslp.get_language(language)


class SourceParser:
    """Shared parser instance with a load-once-per-language grammar cache."""

    def __init__(self, grammar_factory: GrammarFactory | None = None):
        self._factory = grammar_factory or TreeSitterGrammarFactory()
        self._parser = tree_sitter.Parser()
        self._grammars: dict[str, Any] = {}

    def grammar(self, language: str) -> Any:
        """Return the grammar for *language*, loading it on first use.

        Failures are not cached, so a later call retries the load.
        """
        lang = constants.to_language(language).value
        cached = self._grammars.get(lang)
        if cached is not None:
            return cached
        try:
            grammar = self._factory.get_language(lang)
        except Exception as exc:
            logger.error("Failed to load grammar for %s", lang, exc_info=True)
            raise GrammarUnavailable(lang, str(exc)) from exc
        if grammar is None:
            raise GrammarUnavailable(lang, "no grammar returned")
        self._grammars[lang] = grammar
        logger.info("Loaded %s grammar", lang)
        return grammar

    def parse_sync(self, source: str, language: str) -> tree_sitter.Tree:
        grammar = self.grammar(language)
        self._parser.language = grammar
        return self._parser.parse(source.encode("utf-8"))

    async def parse(self, source: str, language: str) -> tree_sitter.Tree:
        """Parse *source*; malformed input yields a tree with error nodes."""
        return self.parse_sync(source, language)


def _is_error_marked(node) -> bool:
    return (
        node.type == ERROR_NODE_TYPE
        or bool(getattr(node, "is_error", False))
        or bool(getattr(node, "is_missing", False))
    )


def find_first_error(tree_or_node) -> Any | None:
    """Return the first ERROR or MISSING node breadth-first, or ``None``.

    Uses the root's native ``has_error`` flag when the binding provides it
    and falls back to a full traversal otherwise.
    """
    root = getattr(tree_or_node, "root_node", tree_or_node)
    native = getattr(root, "has_error", None)
    if native is False:
        return None

    queue = deque([root])
    while queue:
        node = queue.popleft()
        if _is_error_marked(node):
            return node
        queue.extend(node.children)

    # Native flag set but no marked node reachable: blame the whole tree.
    return root if native else None


def describe_error(node) -> ParseError:
    """Build the positioned message shown for a syntax error node."""
    start_row, start_col = node.start_point[0], node.start_point[1]
    end_col = node.end_point[1]
    line = start_row + 1
    message = constants.SYNTAX_ERROR_MESSAGE.format(where=f" on line {line}")
    return ParseError(
        message=message,
        line=line,
        start_column=start_col + 1,
        end_column=max(end_col, start_col) + 1,
    )
