"""Hostname -> IP storage in a private GitHub gist.

The gist is found by its description (``_piphos_``) and holds a single file of
the same name whose content is a JSON object mapping hostnames to addresses.
"""

import logging
from abc import ABC, abstractmethod

from . import codec, validate
from .config import HTTP_TIMEOUT_SECONDS, PIPHOS_STAMP
from .errors import ConfigError, NoRecordError, RemoteRejectedError, UnexpectedStatusError
from .transport import Transport

logger = logging.getLogger(__name__)

GITHUB_GISTS_URL = "https://api.github.com/gists"
PAGE_SIZE = 100


class Tender(ABC):
    name = None

    @abstractmethod
    def pull(self):
        """Return every stored hostname -> IP mapping."""

    @abstractmethod
    def push(self, hostname, ip):
        """Store ``ip`` for ``hostname`` and return the record id."""

    def close(self):
        pass


class GithubTender(Tender):
    name = "gh"

    def __init__(self, token, transport=None, base_url=GITHUB_GISTS_URL,
                 record_id=None, on_record_id=None, timeout=HTTP_TIMEOUT_SECONDS):
        validate.token(token)
        self.transport = transport or Transport(token, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.record_id = record_id or None
        self.on_record_id = on_record_id
        self.stamp = PIPHOS_STAMP

    def close(self):
        self.transport.close()

    # --- DISCOVERY ---
    def _list_gists(self):
        page = 1
        while True:
            body = self.transport.request(
                "GET", self.base_url, 200, params={"per_page": PAGE_SIZE, "page": page},
            )
            gists = codec.parse_gist_list(body)
            yield from gists
            if len(gists) < PAGE_SIZE:
                return
            page += 1

    def find_gist_id(self):
        """Return the id of the first listed gist carrying the stamp, or None."""
        for gist in self._list_gists():
            if gist.description == self.stamp:
                logger.debug("found piphos gist %s", gist.id)
                return gist.id
        return None

    def get_gist(self, gist_id):
        body = self.transport.request("GET", f"{self.base_url}/{gist_id}", 200)
        return codec.parse_gist(codec.load_json(body, "gist"))

    def _locate(self):
        """Fetch the piphos gist, using the cached id when there is one."""
        if self.record_id:
            try:
                return self.get_gist(self.record_id)
            except UnexpectedStatusError as exc:
                if exc.status != 404:
                    raise
                logger.warning("cached gist %s no longer exists, searching again", self.record_id)
                self.record_id = None

        gist_id = self.find_gist_id()
        if gist_id is None:
            return None
        gist = self.get_gist(gist_id)
        self._remember(gist.id)
        return gist

    def _remember(self, gist_id):
        if gist_id == self.record_id:
            return
        self.record_id = gist_id
        if self.on_record_id is None:
            return
        try:
            self.on_record_id(gist_id)
        except (OSError, ConfigError) as exc:
            logger.warning("unable to persist gist id %s: %s", gist_id, exc)

    # --- OPERATIONS ---
    def pull(self):
        gist = self._locate()
        if gist is None:
            raise NoRecordError("no piphos gist found")
        return codec.hosts_from_gist(gist, self.stamp)

    def push(self, hostname, ip):
        if not hostname:
            raise ConfigError("hostname must not be empty")
        validate.ip(ip)
        gist = self._locate()
        if gist is None:
            return self._create({hostname: ip})

        hosts = codec.hosts_from_gist(gist, self.stamp)
        if hosts.get(hostname) == ip:
            logger.info("%s is already %s, nothing to update", hostname, ip)
            return gist.id
        hosts[hostname] = ip
        self._update(gist.id, hosts)
        return gist.id

    def _create(self, hosts):
        try:
            body = self.transport.request(
                "POST", self.base_url, 201, body=codec.create_payload(hosts, self.stamp, self.stamp),
            )
        except UnexpectedStatusError as exc:
            raise RemoteRejectedError(f"gist create rejected with status {exc.status}", exc.status) from exc
        gist = codec.parse_gist(codec.load_json(body, "created gist"))
        logger.info("created piphos gist %s", gist.id)
        self._remember(gist.id)
        return gist.id

    def _update(self, gist_id, hosts):
        try:
            self.transport.request(
                "PATCH", f"{self.base_url}/{gist_id}", 200, body=codec.update_payload(hosts, self.stamp),
            )
        except UnexpectedStatusError as exc:
            raise RemoteRejectedError(f"gist update rejected with status {exc.status}", exc.status) from exc
        logger.info("updated piphos gist %s", gist_id)
