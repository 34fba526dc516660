"""Gist resources and the hostname -> IP payload stored inside them."""

import json
from dataclasses import dataclass, field

from . import validate
from .config import PIPHOS_STAMP
from .errors import InvalidIPError, MalformedRecordError


@dataclass
class GistFile:
    filename: str
    content: str = ""
    truncated: bool = False


@dataclass
class Gist:
    id: str
    description: str = ""
    public: bool = False
    files: dict = field(default_factory=dict)


# --- HOST MAP ---
def encode_hosts(hosts):
    return json.dumps(hosts, indent=2, sort_keys=True)


def decode_hosts(content):
    try:
        hosts = json.loads(content)
    except ValueError as exc:
        raise MalformedRecordError(f"failed to unmarshal host map: {exc}") from exc
    if not isinstance(hosts, dict):
        raise MalformedRecordError("host map must be a JSON object")
    for hostname, ip in hosts.items():
        if not hostname:
            raise MalformedRecordError("host map holds an empty hostname")
        if not isinstance(ip, str):
            raise MalformedRecordError(f"host map entry {hostname!r} is not a string")
        try:
            validate.ip(ip)
        except InvalidIPError as exc:
            raise MalformedRecordError(f"host map entry {hostname!r} holds {ip!r}, not an IP address") from exc
    return hosts


# --- GIST RESOURCES ---
def parse_gist(data):
    if not isinstance(data, dict) or not isinstance(data.get("id"), str):
        raise MalformedRecordError("gist resource without an id")
    files = {}
    for name, raw in (data.get("files") or {}).items():
        if not isinstance(raw, dict):
            raise MalformedRecordError(f"gist file {name!r} is not an object")
        files[name] = GistFile(
            filename=raw.get("filename") or name,
            content=raw.get("content") or "",
            truncated=bool(raw.get("truncated", False)),
        )
    return Gist(
        id=data["id"],
        description=data.get("description") or "",
        public=bool(data.get("public", False)),
        files=files,
    )


def load_json(body, what):
    try:
        return json.loads(body)
    except ValueError as exc:
        raise MalformedRecordError(f"failed to unmarshal {what}: {exc}") from exc


def parse_gist_list(body):
    data = load_json(body, "gist list")
    if not isinstance(data, list):
        raise MalformedRecordError("gist list must be a JSON array")
    return [parse_gist(item) for item in data]


def hosts_from_gist(gist, filename=PIPHOS_STAMP):
    piphos_file = gist.files.get(filename)
    if piphos_file is None:
        raise MalformedRecordError(f"gist {gist.id} is missing file {filename}")
    if piphos_file.truncated:
        raise MalformedRecordError(f"gist {gist.id} file {filename} is truncated")
    return decode_hosts(piphos_file.content)


def create_payload(hosts, description=PIPHOS_STAMP, filename=PIPHOS_STAMP):
    return {
        "description": description,
        "public": False,
        "files": {filename: {"content": encode_hosts(hosts)}},
    }


def update_payload(hosts, filename=PIPHOS_STAMP):
    return {"files": {filename: {"content": encode_hosts(hosts)}}}
