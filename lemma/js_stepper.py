"""Dynamic-VM stepper: runs instrumented JavaScript inside QuickJS.

Every non-blank source line is followed by a ``__snapshot(<line>)`` call.
The snapshot and ``console.log`` hooks call back into Python with the
global scope serialized as JSON, so each recorded step holds a detached copy.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import quickjs

from . import constants
from .errors import ExecutionFailed
from .normalize import finalize_steps
from .trace_types import LineStep

logger = logging.getLogger(__name__)

_LEXICAL_DECLARATION = re.compile(r"\b(?:let|const|var)\s+([A-Za-z_$][\w$]*)")

_PRELUDE = """
(function (lexicalNames) {
  var hostSnapshot = globalThis.%(host_snapshot)s;
  var hostLog = globalThis.%(host_log)s;
  var indirectEval = eval;

  function detach(value) {
    if (value === undefined) return null;
    try {
      var text = JSON.stringify(value);
      return text === undefined ? null : JSON.parse(text);
    } catch (e) {
      return String(value);
    }
  }

  function captureScope() {
    var scope = {};
    Object.keys(globalThis).forEach(function (name) {
      if (name.indexOf("__lemma") === 0) return;
      var value = globalThis[name];
      if (typeof value === "function") return;
      scope[name] = detach(value);
    });
    lexicalNames.forEach(function (name) {
      if (Object.prototype.hasOwnProperty.call(scope, name)) return;
      var value;
      try {
        value = indirectEval(name);
      } catch (e) {
        return;
      }
      if (typeof value === "function") return;
      scope[name] = detach(value);
    });
    return JSON.stringify(scope);
  }

  function log() {
    var args = Array.prototype.slice.call(arguments).map(detach);
    hostLog(JSON.stringify(args), captureScope());
  }

  Object.defineProperty(globalThis, "%(snapshot)s", {
    value: function (line) { hostSnapshot(line, captureScope()); },
    enumerable: false,
  });
  Object.defineProperty(globalThis, "console", {
    value: { log: log, info: log, warn: log, error: log },
    enumerable: false,
    writable: true,
    configurable: true,
  });
})(%(names)s);
"""


def instrument(source: str) -> str:
    """Append ``__snapshot(n);`` on a new line after every non-blank line *n*."""
    out: list[str] = []
    for index, line in enumerate(source.split("\n"), start=1):
        out.append(line)
        if line.strip():
            out.append(f"{constants.SNAPSHOT_FUNCTION}({index});")
    return "\n".join(out)


def lexical_names(source: str) -> list[str]:
    """Top-level binding names the global-object walk cannot see."""
    return list(dict.fromkeys(_LEXICAL_DECLARATION.findall(source)))


def _user_scope(scope_json: str) -> dict[str, Any]:
    scope = json.loads(scope_json)
    return {k: v for k, v in scope.items() if k not in constants.RESERVED_SCOPE_KEYS}


class JsStepper:
    """Single-use QuickJS run producing one ``LineStep`` per snapshot or log."""

    def __init__(self, time_limit: float = 0.0, memory_limit: int = 0):
        self._time_limit = time_limit
        self._memory_limit = memory_limit
        self._steps: list[LineStep] = []

    def _on_snapshot(self, line, scope_json: str) -> None:
        scope = {**_user_scope(scope_json), constants.LOG_KEY: []}
        self._steps.append(LineStep(step=len(self._steps), line=int(line), scope=scope))

    def _on_log(self, args_json: str, scope_json: str) -> None:
        scope = {**_user_scope(scope_json), constants.LOG_KEY: json.loads(args_json)}
        self._steps.append(LineStep(step=len(self._steps), line=0, scope=scope))

    def _new_context(self, source: str) -> quickjs.Context:
        context = quickjs.Context()
        if self._time_limit:
            context.set_time_limit(self._time_limit)
        if self._memory_limit:
            context.set_memory_limit(self._memory_limit)
        context.add_callable(constants.HOST_SNAPSHOT_FUNCTION, self._on_snapshot)
        context.add_callable(constants.HOST_LOG_FUNCTION, self._on_log)
        context.eval(
            _PRELUDE
            % {
                "host_snapshot": constants.HOST_SNAPSHOT_FUNCTION,
                "host_log": constants.HOST_LOG_FUNCTION,
                "snapshot": constants.SNAPSHOT_FUNCTION,
                "names": json.dumps(lexical_names(source)),
            }
        )
        return context

    def run(self, source: str) -> list[LineStep]:
        """Evaluate *source* once and return its normalized steps.

        Raises ``ExecutionFailed`` carrying the VM's message; no partial
        steps are returned in that case.
        """
        context = self._new_context(source)
        try:
            context.eval(instrument(source))
        except (quickjs.JSException, MemoryError) as exc:
            self._steps = []
            message = str(exc).strip() or "Execution failed"
            logger.info("JavaScript execution failed: %s", message)
            raise ExecutionFailed(message) from exc
        finally:
            del context

        logger.debug("QuickJS run recorded %d steps", len(self._steps))
        steps = self._steps
        self._steps = []
        return finalize_steps(steps)


def run_javascript(
    source: str, time_limit: float = 0.0, memory_limit: int = 0
) -> list[LineStep]:
    """Step *source* in a fresh QuickJS context."""
    return JsStepper(time_limit=time_limit, memory_limit=memory_limit).run(source)
