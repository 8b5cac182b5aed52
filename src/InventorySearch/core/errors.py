from __future__ import annotations


class UnknownSegmentError(ValueError):
    """Raised when no index configuration exists for a segment."""


class UnknownIndexError(ValueError):
    """Raised when a search index has no registered query template."""
