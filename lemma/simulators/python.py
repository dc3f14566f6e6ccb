"""PythonSimulator — line-pattern approximation of Python scripts."""

from __future__ import annotations

import logging
import re

from ._base import BaseLineSimulator, _UNRESOLVED
from .. import constants
from ..expressions import is_quoted, render_placeholders, unescape

logger = logging.getLogger(__name__)

_PRINT = re.compile(r"^print\((.*)\)$")
_FSTRING = re.compile(r"^[fF](['\"].*)$")
_FORMAT_CALL = re.compile(r"^(['\"].*['\"])\.format\((.*)\)$")
_STR_CALL = re.compile(r"^str\((.+)\)$")
_LEN_CALL = re.compile(r"^len\((.+)\)$")
_KEYWORD_ARG = re.compile(r"^(sep|end|file|flush)\s*=\s*(.+)$")
_BARE_CALL = re.compile(
    r"^(?!(?:def|class|return|print|if|elif|while|for|with|assert|lambda|import|from)\b)"
    r"[A-Za-z_][\w.]*\s*\(.*\)$"
)


class PythonSimulator(BaseLineSimulator):
    """Top-level Python statements; there is no entry function."""

    LANGUAGE = constants.Language.PYTHON

    COMMENT_PREFIXES = ("#",)
    ENTRY_PATTERN = None

    CONTROL_PATTERN = re.compile(r"^(?:if|elif|for|while)\b")

    BINDING_PATTERNS = (
        re.compile(r"^([A-Za-z_]\w*)\s*(?::\s*[^=]+?)?\s*=(?!=)\s*(.+)$"),
    )
    INCREMENT_PATTERN = None

    TRUE_LITERAL = "True"
    FALSE_LITERAL = "False"
    NONE_LITERAL = "None"

    def render_output(self, statement: str) -> list[str] | None:
        match = _PRINT.match(statement)
        if not match:
            return None
        separator = " "
        values: list[str] = []
        for arg in self.split_arguments(match.group(1)):
            keyword = _KEYWORD_ARG.match(arg)
            if keyword:
                if keyword.group(1) == "sep":
                    separator = self.display(keyword.group(2))
                continue
            values.append(self.display(arg))
        return [separator.join(values)]

    def is_bare_call(self, statement: str) -> bool:
        return bool(_BARE_CALL.match(statement))

    def resolve_call(self, text: str):
        fstring = _FSTRING.match(text)
        if fstring and is_quoted(fstring.group(1)):
            template = unescape(fstring.group(1)[1:-1])
            return render_placeholders(template, [], self.display)
        format_call = _FORMAT_CALL.match(text)
        if format_call and is_quoted(format_call.group(1)):
            return self.format_template(
                format_call.group(1), self.split_arguments(format_call.group(2))
            )
        str_call = _STR_CALL.match(text)
        if str_call:
            return self.display(str_call.group(1))
        len_call = _LEN_CALL.match(text)
        if len_call:
            value = self.resolve(len_call.group(1))
            if isinstance(value, str) and value != len_call.group(1).strip():
                return len(value)
        return _UNRESOLVED
