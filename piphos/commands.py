"""The three operations piphos exposes: ping, push and pull.

Provider names are mapped to implementations here and nowhere else.
"""

import logging

from . import validate
from .beacon import BEACONS, WebBeacon, select_beacon
from .config import HTTP_TIMEOUT_SECONDS
from .errors import UnknownProviderError
from .tender import GithubTender

logger = logging.getLogger(__name__)

TENDERS = {
    "gh": GithubTender,
    "github": GithubTender,
}


def new_beacon(name, beacons=BEACONS, session=None):
    descriptor = select_beacon(name, beacons)
    return WebBeacon(descriptor, session=session)


def new_tender(name, token, record_id=None, on_record_id=None, timeout=HTTP_TIMEOUT_SECONDS, **kwargs):
    try:
        cls = TENDERS[name]
    except KeyError:
        raise UnknownProviderError(f"unknown tender: {name!r}") from None
    validate.token(token)
    return cls(token, record_id=record_id, on_record_id=on_record_id, timeout=timeout, **kwargs)


def ping(beacon_name="", beacons=BEACONS, timeout=HTTP_TIMEOUT_SECONDS, session=None):
    beacon = new_beacon(beacon_name, beacons, session=session)
    logger.debug("using beacon %s (%s)", beacon.name, beacon.descriptor.url)
    try:
        return beacon.ping(timeout=timeout)
    finally:
        beacon.close()


def push(tender_name, token, hostname, ip, record_id=None, on_record_id=None,
         timeout=HTTP_TIMEOUT_SECONDS, **kwargs):
    """Store ``ip`` for ``hostname`` and return the gist id that holds it."""
    tender = new_tender(tender_name, token, record_id, on_record_id, timeout, **kwargs)
    try:
        return tender.push(hostname, ip)
    finally:
        tender.close()


def pull(tender_name, token, record_id=None, on_record_id=None,
         timeout=HTTP_TIMEOUT_SECONDS, **kwargs):
    tender = new_tender(tender_name, token, record_id, on_record_id, timeout, **kwargs)
    try:
        return tender.pull()
    finally:
        tender.close()
