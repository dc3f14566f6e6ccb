"""RustSimulator — line-pattern approximation of a Rust ``main`` function."""

from __future__ import annotations

import logging
import re

from ._base import BaseLineSimulator, _UNRESOLVED
from .. import constants

logger = logging.getLogger(__name__)

_PRINT_MACRO = re.compile(r"^(println|print)!\s*\((.*)\)$")
_FORMAT_MACRO = re.compile(r"^format!\s*\((.*)\)$")
_STRING_FROM = re.compile(r"^String::from\((.+)\)$")
_TO_STRING = re.compile(r"^(.+)\.(?:to_string|to_owned)\(\)$")


class RustSimulator(BaseLineSimulator):
    """Statements inside ``fn main()``."""

    LANGUAGE = constants.Language.RUST

    ENTRY_PATTERN = re.compile(r"^(?:pub\s+)?fn\s+main\s*\(\s*\)")

    CONTROL_PATTERN = re.compile(r"^(?:else\s+)?(?:if|for|while|loop|match)\b")

    BINDING_PATTERNS = (
        re.compile(r"^let\s+(?:mut\s+)?([A-Za-z_]\w*)(?:\s*:\s*[^=]+?)?\s*=(?!=)\s*(.+)$"),
        re.compile(r"^([A-Za-z_]\w*)\s*=(?!=)\s*(.+)$"),
    )
    INCREMENT_PATTERN = None

    NONE_LITERAL = "None"

    def _render_macro(self, args_text: str) -> str:
        args = self.split_arguments(args_text)
        if not args:
            return ""
        return self.format_template(args[0], args[1:])

    def render_output(self, statement: str) -> list[str] | None:
        match = _PRINT_MACRO.match(statement)
        if not match:
            return None
        return [self._render_macro(match.group(2))]

    def resolve_call(self, text: str):
        macro = _FORMAT_MACRO.match(text)
        if macro:
            return self._render_macro(macro.group(1))
        for pattern in (_STRING_FROM, _TO_STRING):
            match = pattern.match(text)
            if match:
                return self.display(match.group(1))
        return _UNRESOLVED
