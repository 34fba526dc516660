"""Error types raised by piphos.

Every failure surfaced to a caller is a ``PiphosError`` carrying an
``ErrorKind`` tag, so callers can branch on ``exc.kind`` without matching on
messages. The underlying cause, when there is one, is chained with
``raise ... from exc``.
"""

from enum import Enum


class ErrorKind(Enum):
    UNREACHABLE = "unreachable"
    BAD_STATUS = "bad-status"
    UNEXPECTED_STATUS = "unexpected-status"
    REMOTE_REJECTED = "remote-rejected"
    RESPONSE_TOO_LARGE = "response-too-large"
    INVALID_IP = "invalid-ip"
    MALFORMED_RECORD = "malformed-record"
    NO_RECORD = "no-record"
    MISSING_CREDENTIAL = "missing-credential"
    UNKNOWN_PROVIDER = "unknown-provider"
    CONFIG = "config"


class PiphosError(Exception):
    kind = None

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class UnreachableError(PiphosError):
    """DNS, connect, read or timeout failure. Never retried."""

    kind = ErrorKind.UNREACHABLE


class StatusError(PiphosError):
    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


class BadStatusError(StatusError):
    """A beacon answered outside 200-299."""

    kind = ErrorKind.BAD_STATUS


class UnexpectedStatusError(StatusError):
    """The tender API answered with a status other than the one expected."""

    kind = ErrorKind.UNEXPECTED_STATUS


class RemoteRejectedError(StatusError):
    """The tender refused a create or update."""

    kind = ErrorKind.REMOTE_REJECTED


class ResponseTooLargeError(PiphosError):
    kind = ErrorKind.RESPONSE_TOO_LARGE


class InvalidIPError(PiphosError):
    kind = ErrorKind.INVALID_IP

    def __init__(self, raw):
        super().__init__(f"invalid IP address format: {raw!r}")
        self.raw = raw


class MalformedRecordError(PiphosError):
    kind = ErrorKind.MALFORMED_RECORD


class NoRecordError(PiphosError):
    kind = ErrorKind.NO_RECORD


class MissingCredentialError(PiphosError):
    kind = ErrorKind.MISSING_CREDENTIAL


class UnknownProviderError(PiphosError):
    kind = ErrorKind.UNKNOWN_PROVIDER


class ConfigError(PiphosError):
    kind = ErrorKind.CONFIG
