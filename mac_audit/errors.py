# mac_audit/errors.py


class AuditError(Exception):
    """Base class for errors raised by the audit engine."""


class PrerequisiteError(AuditError):
    """The host cannot be audited (wrong OS, missing tools, no data access)."""

    def __init__(self, message, hint=""):
        super().__init__(message)
        self.message = message
        self.hint = hint
