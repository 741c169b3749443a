"""
Exception hierarchy shared by the framework and the nest refresher module.

Every error carries a message plus a context dict (nest id, database,
offending setting). The context is rendered into ``str()`` for console
output and exposed separately through ``log_fields()`` so the JSON log
formatter can emit it as structured data.
"""

from typing import Optional, Dict, Any


class NestBaseException(Exception):
    """Base class for all nest refresher errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context) if context else {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message

    def log_fields(self) -> Dict[str, Any]:
        """Structured fields for a JSON log entry describing this error."""
        fields: Dict[str, Any] = {"error_type": type(self).__name__}
        if self.context:
            fields["error_context"] = dict(self.context)
        return fields


class NestConfigurationError(NestBaseException):
    """Environment config missing or malformed, or refresh settings out of range."""


class NestValidationError(NestBaseException):
    """Config structure or nest data rejected; geometry errors derive from this."""


class NestAuthenticationError(NestBaseException):
    """A database password environment variable is not set."""


class NestConnectionError(NestBaseException):
    """Database unreachable, timed out, or a query against it failed."""


class NestProcessingError(NestBaseException):
    """
    A refresh could not complete.

    Raised for unwritable nest updates, unknown nest ids and cancelled bulk
    refreshes; see ``modules.nest_refresher.exceptions``.
    """
