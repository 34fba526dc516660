"""Public IP detection through plaintext "beacon" services."""

import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType

import requests

from . import validate
from .config import HTTP_TIMEOUT_SECONDS, MAX_RESPONSE_BODY_SIZE, USER_AGENT
from .errors import BadStatusError, ConfigError, InvalidIPError, UnreachableError
from .transport import read_limited

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeaconDescriptor:
    name: str
    url: str


BEACONS = MappingProxyType({
    "haz": BeaconDescriptor("haz", "https://ipv4.icanhazip.com"),
    "aws": BeaconDescriptor("aws", "https://checkip.amazonaws.com"),
})


class Beacon(ABC):
    name = None

    @abstractmethod
    def ping(self, timeout=HTTP_TIMEOUT_SECONDS):
        """Return the caller's public IP address as a validated string."""

    def close(self):
        pass


class WebBeacon(Beacon):
    def __init__(self, descriptor, session=None, max_body_size=MAX_RESPONSE_BODY_SIZE):
        self.descriptor = descriptor
        self.name = descriptor.name
        self.session = session or requests.Session()
        self._owns_session = session is None
        self.headers = {"User-Agent": USER_AGENT}
        self.max_body_size = max_body_size

    def ping(self, timeout=HTTP_TIMEOUT_SECONDS):
        url = self.descriptor.url
        deadline = time.monotonic() + timeout
        try:
            response = self.session.get(url, headers=self.headers, timeout=timeout, stream=True)
        except requests.RequestException as exc:
            raise UnreachableError(f"failed to get response from beacon {self.name}: {exc}") from exc

        with response:
            if not 200 <= response.status_code < 300:
                try:
                    preview = next(response.iter_content(512), b"")
                except requests.RequestException:
                    preview = b""
                logger.debug("beacon %s answered %d: %s", self.name, response.status_code,
                             preview[:512].decode("utf-8", errors="replace"))
                raise BadStatusError(
                    f"unexpected response status from beacon {self.name}: {response.status_code}",
                    response.status_code,
                )
            content = read_limited(response, limit=self.max_body_size, deadline=deadline)

        public_ip = content.decode("utf-8", errors="replace").strip()
        try:
            validate.ip(public_ip)
        except InvalidIPError:
            logger.warning("beacon %s returned something that is not an IP address", self.name)
            raise
        logger.debug("beacon %s reports %s", self.name, public_ip)
        return public_ip

    def close(self):
        if self._owns_session:
            self.session.close()


def select_beacon(name, beacons=BEACONS, rng=random):
    """Pick the named beacon, or a random one when the name is empty or unknown."""
    if not beacons:
        raise ConfigError("no beacons configured")
    if name in beacons:
        return beacons[name]
    if name:
        logger.warning("unknown beacon %r, picking one at random", name)
    return beacons[rng.choice(sorted(beacons))]
