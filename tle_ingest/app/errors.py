# errors.py - Exception taxonomy for TLE ingest
#
# Only Transport/Auth/Empty/Alignment failures cross the adapter boundary.
# TLEParseError and PropagationError are recovered per object.
# ConfigError is fatal at startup.


class TLEIngestError(Exception):
    """Base class for every ingest failure."""


class ConfigError(TLEIngestError):
    """Missing credentials or invalid settings."""

    def __init__(self, message: str, missing=None):
        super().__init__(message)
        self.missing = list(missing or [])


class TransportError(TLEIngestError):
    """Network failure, timeout, non-2xx response or unreadable payload."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(TransportError):
    """Login to a credential-gated source failed."""


class EmptyResultError(TLEIngestError):
    """Source returned zero objects, or zero usable objects."""


class BatchAlignmentError(TLEIngestError):
    """A 2-line batch is not strictly paired (line 1 / line 2)."""


class TLEParseError(TLEIngestError):
    """One element block is malformed."""


class PropagationError(TLEIngestError):
    """Object cannot be propagated to the requested time (decayed, bad elements)."""
