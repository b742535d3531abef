class ComparisonError(RuntimeError):
    """Base error for snapshot comparison failures."""


class MissingInputError(ComparisonError):
    """Raised when a comparison is started without an element list."""


class MatchingInvariantError(ComparisonError):
    """Raised when a match would reuse an already paired element."""


class SnapshotFormatError(ComparisonError):
    """Raised when a persisted snapshot or change file cannot be read."""


class CaptureError(ComparisonError):
    """Raised when the browser capture of a page fails."""
