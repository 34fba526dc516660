import ipaddress

from .errors import InvalidIPError, MissingCredentialError


def ip(candidate):
    """Raise InvalidIPError unless ``candidate`` is a bare IPv4 or IPv6 literal."""
    if not isinstance(candidate, str) or not candidate:
        raise InvalidIPError(candidate)
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError as exc:
        raise InvalidIPError(candidate) from exc
    # zone suffixes ("fe80::1%eth0") are not address literals
    if getattr(address, "scope_id", None):
        raise InvalidIPError(candidate)


def token(value):
    if not value:
        raise MissingCredentialError("invalid token: token is empty")
