"""
Exceptions raised while preparing genome files.
Kept minimal - only what's needed for clear error handling.
"""


class FastixeError(Exception):
    """Base exception for fastixe processing errors."""
    pass


class ConfigurationError(FastixeError):
    """Raised for invalid option combinations or a missing optional capability."""
    pass


class PatternMismatchError(FastixeError):
    """Raised when a file name does not match the prefix pattern."""

    def __init__(self, file_name: str, pattern: str) -> None:
        self.file_name = file_name
        self.pattern = pattern
        super().__init__(f"Filename '{file_name}' doesn't match regex '{pattern}'")


class MalformedRecordError(FastixeError):
    """Raised for a header line without a record identifier."""

    def __init__(self, source: str, line_number: int) -> None:
        self.source = source
        self.line_number = line_number
        super().__init__(f"Missing record id in file: {source} (line {line_number})")


class IndexBuildError(FastixeError):
    """Raised when building the FASTA index fails."""
    pass
