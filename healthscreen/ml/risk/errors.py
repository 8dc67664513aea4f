from __future__ import annotations


class ExtractionError(ValueError):
    """Raw input could not be decoded into a feature record at all."""


class ScoringError(RuntimeError):
    """A weight table references a feature the record does not carry.

    This is an extractor/scorer contract violation, not a runtime condition,
    and is never caught inside the pipeline.
    """
