"""GoSimulator — line-pattern approximation of a Go ``main`` function."""

from __future__ import annotations

import logging
import re

from ._base import BaseLineSimulator, _UNRESOLVED
from .. import constants
from ..expressions import render_printf, unquote

logger = logging.getLogger(__name__)

_FMT_PRINT = re.compile(r"^fmt\.(Println|Printf|Print)\((.*)\)$")
_SPRINT = re.compile(r"^fmt\.(Sprintf|Sprint|Sprintln)\((.*)\)$")
_ITOA = re.compile(r"^strconv\.Itoa\((.+)\)$")


class GoSimulator(BaseLineSimulator):
    """Statements inside ``func main()``; package and import lines are skipped."""

    LANGUAGE = constants.Language.GO

    ENTRY_PATTERN = re.compile(r"^func\s+main\s*\(\s*\)")

    CONTROL_PATTERN = re.compile(r"^(?:else\s+)?(?:if|for|switch)\b")

    BINDING_PATTERNS = (
        re.compile(r"^([A-Za-z_]\w*)\s*:=\s*(.+)$"),
        re.compile(r"^(?:var|const)\s+([A-Za-z_]\w*)(?:\s+[\w.\[\]*]+)?\s*=\s*(.+)$"),
        re.compile(r"^([A-Za-z_]\w*)\s*=(?!=)\s*(.+)$"),
    )

    NONE_LITERAL = "nil"

    def _format(self, verb: str, args: list[str]) -> str:
        if verb in ("Printf", "Sprintf"):
            if not args:
                return ""
            return render_printf(unquote(args[0]), args[1:], self.display)
        joiner = "" if verb in ("Print", "Sprint") else " "
        return joiner.join(self.display(a) for a in args)

    def render_output(self, statement: str) -> list[str] | None:
        match = _FMT_PRINT.match(statement)
        if not match:
            return None
        verb, args = match.group(1), self.split_arguments(match.group(2))
        return [self._format(verb, args).rstrip("\n")]

    def resolve_call(self, text: str):
        sprint = _SPRINT.match(text)
        if sprint:
            return self._format(sprint.group(1), self.split_arguments(sprint.group(2)))
        itoa = _ITOA.match(text)
        if itoa:
            return self.display(itoa.group(1))
        return _UNRESOLVED
