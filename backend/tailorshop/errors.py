from typing import List, Optional


class TailorError(Exception):
    """Base class for errors raised by the storefront services."""


class ValidationError(TailorError):
    """A required selection or field is missing or invalid.

    `issues` carries machine-readable issue codes (e.g. ``missing_fabric``) so
    callers can show every problem with a wizard step at once.
    """

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.issues = sorted(issues or [])


class FetchError(TailorError):
    """The backend query or transport failed; message comes from the backend."""

    def __init__(self, message: str):
        super().__init__(message or "Failed to fetch data")
        self.message = message or "Failed to fetch data"


class NotFoundError(TailorError):
    def __init__(self, entity: str, key):
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class ConfigError(TailorError):
    """Required configuration is missing; fatal at startup."""
