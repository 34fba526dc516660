import json
import logging
import time

import requests

from .config import HTTP_TIMEOUT_SECONDS, MAX_RESPONSE_BODY_SIZE, USER_AGENT
from .errors import ResponseTooLargeError, UnexpectedStatusError, UnreachableError

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"
CHUNK_SIZE = 64 * 1024


def read_limited(response, limit=MAX_RESPONSE_BODY_SIZE, deadline=None):
    """Read a streamed response body, refusing anything larger than ``limit``.

    ``deadline`` is a ``time.monotonic()`` value bounding the whole read, since
    requests' own timeout only applies between bytes.
    """
    body = bytearray()
    try:
        for chunk in response.iter_content(CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > limit:
                raise ResponseTooLargeError(
                    f"response from {response.url} exceeds {limit} bytes"
                )
            if deadline is not None and time.monotonic() > deadline:
                raise UnreachableError(f"timed out reading response from {response.url}")
    except requests.RequestException as exc:
        raise UnreachableError(f"unable to read response from {response.url}: {exc}") from exc
    return bytes(body)


def _preview(body, size=512):
    return body[:size].decode("utf-8", errors="replace")


class Transport:
    """Authenticated JSON client for the tender API."""

    def __init__(self, token, timeout=HTTP_TIMEOUT_SECONDS, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self._owns_session = session is None
        self._token = token
        self.headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "Authorization": f"Bearer {token}",
        }

    def _redact(self, text):
        if self._token:
            return text.replace(self._token, "***")
        return text

    def request(self, method, url, expected_status, body=None, timeout=None, params=None):
        """Send one request and return the raw body.

        The status must equal ``expected_status`` exactly; anything else is an
        UnexpectedStatusError.
        """
        timeout = timeout or self.timeout
        headers = dict(self.headers)
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(body)

        deadline = time.monotonic() + timeout
        try:
            response = self.session.request(
                method, url, headers=headers, data=data, params=params,
                timeout=timeout, stream=True,
            )
        except requests.RequestException as exc:
            raise UnreachableError(f"unable to reach {url}: {self._redact(str(exc))}") from exc

        with response:
            content = read_limited(response, deadline=deadline)

        if response.status_code != expected_status:
            logger.debug(
                "%s %s returned %d (expected %d): %s",
                method, url, response.status_code, expected_status,
                self._redact(_preview(content)),
            )
            raise UnexpectedStatusError(
                f"unexpected response status from {method} {url}: {response.status_code}",
                response.status_code,
            )
        return content

    def close(self):
        if self._owns_session:
            self.session.close()
