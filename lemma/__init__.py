"""Execution timeline engine package."""

from .run import ExecutionSession  # noqa: F401
from .api import (  # noqa: F401
    check_syntax,
    lint_source,
    simulate,
    execute_traced,
)
