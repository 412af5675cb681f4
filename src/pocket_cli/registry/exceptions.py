"""
Pocket Registry Exceptions

Tagged error types shared by every command. Each error carries a stable
``code`` that is rendered into the output envelope, plus an optional
remediation hint for the caller.
"""

from typing import Any, Dict, List, Optional


class PocketError(Exception):
    """Base exception for all Pocket errors."""

    code = "command_failed"

    def __init__(
        self,
        message: str,
        remediation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message
            remediation: Suggested fix for the caller
            details: Structured context rendered into the error envelope
        """
        super().__init__(message)
        self.message = message
        self.remediation = remediation
        self.details = details

    def __str__(self) -> str:
        parts = [self.message]
        if self.remediation:
            parts.append(f"To fix: {self.remediation}")
        return "\n".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Render the error body of the output envelope."""
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        if self.remediation:
            body["remediation"] = self.remediation
        return body


class ConfigError(PocketError):
    """Credential store could not be read or written."""

    code = "config_error"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.path = path
        if not remediation and path:
            remediation = f"Check that {path} is readable, writable and contains a JSON object"
        if path:
            details = {**(details or {}), "path": path}
        super().__init__(message, remediation, details)


class MissingCredentialError(PocketError):
    """A command needed a credential that is not set."""

    code = "missing_credential"

    def __init__(
        self,
        key: str,
        services: Optional[List[str]] = None,
        remediation: Optional[str] = None
    ):
        self.key = key
        self.services = services or []
        if not remediation:
            remediation = f"Run: pocket config set {key} <value>"
            if self.services:
                remediation += f" (instructions: pocket setup show {self.services[0]})"
        details: Dict[str, Any] = {"key": key}
        if self.services:
            details["services"] = self.services
        super().__init__(f"config key not set: {key}", remediation, details)


class UnknownServiceError(PocketError):
    """Service id is not in the setup catalog."""

    code = "unknown_service"

    def __init__(self, service: str, available: Optional[List[str]] = None):
        self.service = service
        details = {"available": available} if available else None
        super().__init__(
            f"Unknown service: {service}",
            "Run 'pocket setup list --all' to see every service",
            details
        )


class UnknownIntegrationGroupError(PocketError):
    """Group id is not one of the known integration groups."""

    code = "unknown_group"

    def __init__(self, group: str, available: Optional[List[str]] = None):
        self.group = group
        details = {"valid_groups": available} if available else None
        super().__init__(
            f"Unknown integration group: {group}",
            "Run 'pocket integrations groups' to see every group",
            details
        )


class InvalidKeyError(PocketError):
    """Key is not owned by the named service, or is not a valid key name."""

    code = "invalid_key"

    def __init__(
        self,
        message: str,
        key: str,
        valid_keys: Optional[List[str]] = None,
        remediation: Optional[str] = None
    ):
        self.key = key
        self.valid_keys = valid_keys or []
        details: Dict[str, Any] = {"key": key}
        if self.valid_keys:
            details["valid_keys"] = self.valid_keys
            if not remediation:
                remediation = f"Use one of: {', '.join(self.valid_keys)}"
        super().__init__(message, remediation, details)


class AmbiguousKeyError(PocketError):
    """Only a value was given but the service has several keys."""

    code = "key_required"

    def __init__(self, service: str, keys: List[str]):
        self.service = service
        self.keys = keys
        super().__init__(
            "Service has multiple keys, specify which key to set",
            f"Run: pocket setup set {service} <key> <value>",
            {"service": service, "keys": keys}
        )


class RegistryError(PocketError):
    """The built-in integration or service tables are inconsistent."""

    code = "registry_error"

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = problems or []
        details = {"problems": self.problems} if self.problems else None
        super().__init__(message, None, details)


class UsageError(PocketError):
    """Command line could not be parsed."""

    code = "usage_error"


# Error code mapping for CLI exit codes
ERROR_CODES = {
    ConfigError: 10,
    MissingCredentialError: 11,
    UnknownServiceError: 12,
    UnknownIntegrationGroupError: 13,
    InvalidKeyError: 14,
    AmbiguousKeyError: 15,
    RegistryError: 16,
    UsageError: 2,
    PocketError: 1,
}


def get_error_code(error: Exception) -> int:
    """Get the exit code for an error type."""
    for error_type, code in ERROR_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1
