"""CppSimulator — line-pattern approximation of a C++ ``main`` function."""

from __future__ import annotations

import logging
import re

from ._base import BaseLineSimulator, _UNRESOLVED
from .. import constants
from ..expressions import render_printf, split_top_level, unquote

logger = logging.getLogger(__name__)

_COUT = re.compile(r"^(?:std::)?cout\s*<<(.*)$")
_PRINTF = re.compile(r"^(?:std::)?printf\s*\((.*)\)$")
_TO_STRING = re.compile(r"^(?:std::)?(?:to_string|string)\((.+)\)$")

_LINE_ENDS = frozenset({"std::endl", "endl", '"\\n"', "'\\n'"})


class CppSimulator(BaseLineSimulator):
    """Statements inside ``int main(...)``; includes and usings are skipped."""

    LANGUAGE = constants.Language.CPP

    ENTRY_PATTERN = re.compile(r"\bint\s+main\s*\(")

    BINDING_PATTERNS = (
        re.compile(
            r"^(?:(?:const|static|constexpr|unsigned|signed|long|short)\s+)*"
            r"[A-Za-z_][\w:]*(?:<[^=]*>)?\s*[*&]?\s+([A-Za-z_]\w*)\s*=(?!=)\s*(.+)$"
        ),
        re.compile(r"^([A-Za-z_]\w*)\s*=(?!=)\s*(.+)$"),
    )

    NONE_LITERAL = "nullptr"

    def render_output(self, statement: str) -> list[str] | None:
        cout = _COUT.match(statement)
        if cout:
            pieces = [p.strip() for p in split_top_level(cout.group(1), "<<")]
            text = "".join(self.display(p) for p in pieces if p and p not in _LINE_ENDS)
            return [text.rstrip("\n")]
        printf = _PRINTF.match(statement)
        if printf:
            args = self.split_arguments(printf.group(1))
            if not args:
                return [""]
            return [render_printf(unquote(args[0]), args[1:], self.display).rstrip("\n")]
        return None

    def resolve_call(self, text: str):
        match = _TO_STRING.match(text)
        if match:
            return self.display(match.group(1))
        return _UNRESOLVED
