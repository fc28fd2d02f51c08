"""
Outcome lattice — the four test outcomes and their severity order.

    passed (1) < skipped (2) < failed (3) < errored (4)

Outcome is a ``str`` enum, so members compare equal to their labels and
serialise as plain strings in JSON payloads.
"""

from __future__ import annotations

from enum import Enum

from runboard.core.exceptions import ValidationError


class Outcome(str, Enum):
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"
    ERRORED = "errored"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def parse(cls, value, field: str = "result") -> "Outcome":
        """Return the Outcome for a label; raise ValidationError for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError.for_field(
                field,
                f"Result must be one of: {', '.join(cls.labels())} (got {value!r})",
            ) from None

    @classmethod
    def labels(cls) -> list[str]:
        """Labels in ascending severity order."""
        return [o.value for o in sorted(cls, key=lambda o: o.severity)]


_SEVERITY = {
    Outcome.PASSED: 1,
    Outcome.SKIPPED: 2,
    Outcome.FAILED: 3,
    Outcome.ERRORED: 4,
}


def worse(a: Outcome, b: Outcome) -> Outcome:
    """Return the more severe of two outcomes."""
    return b if b.severity > a.severity else a


def zero_counts() -> dict[str, int]:
    """Status-count mapping with every outcome present at 0."""
    return {label: 0 for label in Outcome.labels()}
