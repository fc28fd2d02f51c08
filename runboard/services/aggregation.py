"""
Submission aggregation — derived status and chart rollups.

Everything here is pure: inputs are submissions/sections exposing plain
attributes (ORM rows or the frozen inputs from ``validation``), outputs are
new dicts. Safe to call from any number of requests concurrently.

Traversal:
    ``iter_results`` flattens one submission into a lazy sequence of
    ``(Outcome, qualified_name)`` pairs, section first, then its
    subsections. Both rollups consume that single iterator.

        <test_name> - <section>                 (section occurrence)
        <test_name> - <section> - <subsection>  (subsection occurrence)

A single record carrying an unknown result label fails the whole rollup
with ValidationError; nothing is silently dropped.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from runboard.core.exceptions import ValidationError
from runboard.core.outcome import Outcome, worse, zero_counts


def _iter_section_outcomes(sections) -> Iterator[tuple[Outcome, object, object | None]]:
    for section in sections:
        yield Outcome.parse(section.result), section, None
        for subsection in section.subsections:
            yield Outcome.parse(subsection.result), section, subsection


def iter_results(submission) -> Iterator[tuple[Outcome, str]]:
    """Yield ``(outcome, qualified_name)`` for every section and subsection."""
    for outcome, section, subsection in _iter_section_outcomes(submission.sections):
        if subsection is None:
            yield outcome, f"{submission.test_name} - {section.name}"
        else:
            yield outcome, f"{submission.test_name} - {section.name} - {subsection.name}"


def compute_status(sections) -> Outcome:
    """Return the most severe outcome across all sections and subsections.

    Callers reject empty section lists before getting here; reaching this
    with an empty list is still refused rather than reported as ``passed``.
    """
    sections = list(sections)
    if not sections:
        raise ValidationError.for_field("sections", "At least one section is required")

    status = Outcome.PASSED
    for outcome, _section, _subsection in _iter_section_outcomes(sections):
        status = worse(status, outcome)
    return status


def compute_status_counts(submissions: Iterable) -> dict[str, int]:
    """Count result occurrences at every level, keyed by outcome label.

    A submission with 3 sections and 5 subsections contributes 8 increments.
    The submission's own derived status is not counted.
    """
    counts = zero_counts()
    for submission in submissions:
        for outcome, _name in iter_results(submission):
            counts[outcome.value] += 1
    return counts


def compute_names_by_status(submissions: Iterable) -> dict[str, list[str]]:
    """Collect qualified names per outcome label, in traversal order."""
    names: dict[str, list[str]] = {label: [] for label in Outcome.labels()}
    for submission in submissions:
        for outcome, name in iter_results(submission):
            names[outcome.value].append(name)
    return names


def build_chart_data(submissions) -> dict:
    """Counts + names payload used by every chart on the dashboard."""
    submissions = list(submissions)
    return {
        "status_counts": compute_status_counts(submissions),
        "names_by_status": compute_names_by_status(submissions),
    }
