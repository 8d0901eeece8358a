"""
calnotes Exceptions

Custom exception types carrying remediation hints for the CLI.
"""

from typing import Optional


class CalnotesError(Exception):
    """Base exception for all calnotes errors."""

    def __init__(
        self,
        message: str,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message
            remediation: Suggested fix for the user
            details: Technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.remediation = remediation
        self.details = details

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.remediation:
            parts.append(f"To fix: {self.remediation}")
        return "\n".join(parts)


class ConfigError(CalnotesError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.config_key = config_key
        if not remediation and config_key:
            remediation = f"Check '{config_key}' in config.yaml or the CALNOTES_{config_key.upper()} variable"
        super().__init__(message, remediation, details)


class CredentialError(CalnotesError):
    """Credential loading errors."""

    def __init__(
        self,
        message: str,
        credential_type: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.credential_type = credential_type
        if not remediation and credential_type:
            remediation = f"Verify your {credential_type} credentials are present and have the calendar and drive scopes"
        super().__init__(message, remediation, details)


class SyncError(CalnotesError):
    """Event source failures that terminate a sync run."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.service = service
        if not remediation and service:
            remediation = f"Check your {service} connection and run 'calnotes sync' again"
        super().__init__(message, remediation, details)


class SyncTokenInvalidated(SyncError):
    """The server no longer accepts the stored sync token."""

    def __init__(self, message: str = "Sync token is no longer valid, a full sync is required."):
        super().__init__(
            message,
            service="Google Calendar",
            remediation="Run 'calnotes sync --full'"
        )


class DocumentError(CalnotesError):
    """Note store read/write errors."""

    def __init__(
        self,
        message: str,
        document: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.document = document
        if not remediation and document:
            remediation = f"Check that '{document}' is readable and the notes folder is shared with this account"
        super().__init__(message, remediation, details)


class NetworkError(CalnotesError):
    """Network-related errors (timeouts, connection issues)."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.endpoint = endpoint
        if not remediation:
            remediation = "Check your internet connection and try again."
        super().__init__(message, remediation, details)


# Error code mapping for CLI exit codes
ERROR_CODES = {
    ConfigError: 10,
    CredentialError: 11,
    SyncTokenInvalidated: 12,
    SyncError: 12,
    NetworkError: 13,
    DocumentError: 14,
    CalnotesError: 1,
}


def get_error_code(error: Exception) -> int:
    """Get the exit code for an error type."""
    for error_type, code in ERROR_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1
