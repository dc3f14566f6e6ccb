"""Line-pattern simulators for the heuristic guest languages."""

from __future__ import annotations

import importlib

from ._base import BaseLineSimulator
from ..trace_types import LineStep

# Lazy imports to avoid loading every simulator at startup
_SIMULATOR_CLASSES: dict[str, str] = {
    "python": "python.PythonSimulator",
    "go": "go.GoSimulator",
    "rust": "rust.RustSimulator",
    "cpp": "cpp.CppSimulator",
}


def get_line_simulator(language: str) -> BaseLineSimulator:
    """Instantiate a fresh line simulator for *language*.

    Raises ``ValueError`` if *language* has no registered simulator.
    """
    spec = _SIMULATOR_CLASSES.get(language)
    if spec is None:
        raise ValueError(f"Unsupported language for line simulation: {language}")
    module_name, class_name = spec.split(".")
    mod = importlib.import_module(f".{module_name}", package=__package__)
    cls = getattr(mod, class_name)
    return cls()


def simulate_lines(code: str, language: str) -> list[LineStep]:
    return get_line_simulator(language).simulate(code)


SUPPORTED_SIMULATOR_LANGUAGES: tuple[str, ...] = tuple(_SIMULATOR_CLASSES.keys())

__all__ = [
    "BaseLineSimulator",
    "get_line_simulator",
    "simulate_lines",
    "SUPPORTED_SIMULATOR_LANGUAGES",
]
