"""Run every built-in sample through each execution path and report the result.

Usage:
    python scripts/audit_samples.py

For each guest language, runs the sample through the dynamic VM (JavaScript)
or both heuristic strategies (everything else), logging step counts and the
final output.  Exits non-zero if any path fails.
"""

import logging
import sys

from lemma import constants
from lemma.api import execute_traced
from lemma.errors import LemmaError
from lemma.normalize import step_scope
from lemma.run_types import EngineConfig
from lemma.samples import SAMPLES

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _strategies_for(language: constants.Language) -> tuple[str, ...]:
    if language == constants.DYNAMIC_LANGUAGE:
        return (constants.STRATEGY_VM,)
    return constants.HEURISTIC_STRATEGIES


def audit_sample(language: constants.Language, strategy: str) -> bool:
    """Run one sample; return whether it produced a final output."""
    config = EngineConfig(use_workers=False)
    if strategy in constants.HEURISTIC_STRATEGIES:
        config = EngineConfig(use_workers=False, heuristic_strategy=strategy)
    try:
        steps, stats = execute_traced(SAMPLES[language], language.value, config=config)
    except LemmaError as exc:
        logger.error("%-10s %-5s FAILED: %s", language.value, strategy, exc)
        return False
    final = step_scope(steps[-1]).get(constants.FINAL_OUTPUT_KEY)
    logger.info(
        "%-10s %-5s %3d steps %6.1fms  output=%r",
        language.value,
        strategy,
        len(steps),
        stats.total_time * 1000,
        final,
    )
    return isinstance(final, str)


def main() -> int:
    results = [
        audit_sample(language, strategy)
        for language in constants.Language
        for strategy in _strategies_for(language)
    ]
    failures = results.count(False)
    logger.info("Audited %d paths, %d failure(s)", len(results), failures)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
