import pytest

from piphos import validate
from piphos.errors import ErrorKind, InvalidIPError, MissingCredentialError


@pytest.mark.parametrize("candidate", [
    "203.0.113.1",
    "0.0.0.0",
    "255.255.255.255",
    "2001:db8::1",
    "::1",
    "::",
    "fe80::1",
    "2001:0db8:0000:0000:0000:ff00:0042:8329",
    "::ffff:192.0.2.1",
])
def test_ip_accepts_literals(candidate):
    validate.ip(candidate)


@pytest.mark.parametrize("candidate", [
    "",
    "256.1.1.1",
    "1.2.3",
    "1.2.3.4.5",
    "203.0.113.1 ",
    " 203.0.113.1",
    "203.0.113.1\n",
    "example.com",
    "not-an-ip",
    "2001:db8:::1",
    "2001:db8::1::2",
    "fe80::1%eth0",
    "1.2.3.-4",
])
def test_ip_rejects_everything_else(candidate):
    with pytest.raises(InvalidIPError) as excinfo:
        validate.ip(candidate)
    assert excinfo.value.kind is ErrorKind.INVALID_IP
    assert excinfo.value.raw == candidate


def test_ip_rejects_non_strings():
    with pytest.raises(InvalidIPError):
        validate.ip(3405803777)


def test_token():
    validate.token("ghp_abc")
    with pytest.raises(MissingCredentialError):
        validate.token("")
