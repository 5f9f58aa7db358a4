"""
Errors raised by the layout service layer.

The compiler, parser and validator never raise for bad layout text; these
exceptions belong to storage and the API around them.
"""

from typing import List, Optional


class LayoutError(Exception):
    """Root of all layout service errors."""


class InvalidLayoutPathError(LayoutError):
    """The requested path is not a relative `.astro` path inside the data directory."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        suffix = f": {reason}" if reason else ""
        super().__init__(f"Invalid layout path '{path}'{suffix}")


class LayoutNotFoundError(LayoutError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Layout '{path}' not found")


class RevisionConflictError(LayoutError):
    """
    The layout changed since the editor loaded it.

    `expected_sha` is what the caller based its edit on, `current_sha` what
    is stored now (None when the file does not exist).
    """

    def __init__(self, path: str, expected_sha: Optional[str], current_sha: Optional[str]):
        self.path = path
        self.expected_sha = expected_sha
        self.current_sha = current_sha
        super().__init__(
            f"Layout '{path}' is at revision {current_sha}, not {expected_sha}"
        )


class LayoutValidationError(LayoutError):
    """A layout failed validation and was not saved."""

    def __init__(self, path: str, errors: List[str]):
        self.path = path
        self.errors = errors
        super().__init__("Validation failed:\n- " + "\n- ".join(errors))
