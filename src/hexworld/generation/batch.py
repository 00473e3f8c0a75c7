"""Map quality tester: run many seeds and summarize validation outcomes."""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

import structlog

from .config import MapConfig
from .generator import MapGenerator

logger = structlog.get_logger()

_NUMBER = re.compile(r"-?\d+(\.\d+)?")
_QUOTED = re.compile(r"'[^']*'")


def message_kind(message: str) -> str:
    """Collapse a validation message to its kind by masking names and numbers.

    ``"Too few town locations: 0 placed, minimum is 1"`` becomes
    ``"Too few town locations: N placed, minimum is N"``.
    """
    return _NUMBER.sub("N", _QUOTED.sub("'...'", message))


@dataclass
class BatchReport:
    """Aggregate outcome of a batch run."""

    total: int = 0
    passed: int = 0
    attempts: list[int] = field(default_factory=list)
    error_counts: Counter = field(default_factory=Counter)
    warning_counts: Counter = field(default_factory=Counter)
    failed_seeds: list[int] = field(default_factory=list)

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total if self.total else 0.0

    @property
    def average_attempts(self) -> float:
        return sum(self.attempts) / len(self.attempts) if self.attempts else 0.0

    def most_common_errors(self, n: int = 5) -> list[tuple[str, int]]:
        return self.error_counts.most_common(n)

    def most_common_warnings(self, n: int = 5) -> list[tuple[str, int]]:
        return self.warning_counts.most_common(n)


def run_batch(
    config: MapConfig,
    seeds: Iterable[int],
    max_attempts: int = 3,
) -> BatchReport:
    """Generate a map per seed and tally how the results validate.

    Errors and warnings are counted from the final attempt of each seed
    (the accepted map, or the best rejected one).

    Args:
        config: Generation config shared by every run.
        seeds: Seeds to try.
        max_attempts: Attempt budget per seed.

    Returns:
        BatchReport over all seeds.
    """
    report = BatchReport()

    for seed in seeds:
        generator = MapGenerator(config)
        accepted = generator.generate_complete_map(seed, max_attempts=max_attempts)

        report.total += 1
        report.attempts.append(generator.attempts_used)
        if accepted:
            report.passed += 1
        else:
            report.failed_seeds.append(seed)

        result = generator.last_result
        if result is not None:
            report.error_counts.update(message_kind(e) for e in result.errors)
            report.warning_counts.update(message_kind(w) for w in result.warnings)

    logger.info(
        "batch_complete",
        total=report.total,
        passed=report.passed,
        pass_rate=round(report.pass_rate, 3),
        average_attempts=round(report.average_attempts, 2),
    )
    return report
