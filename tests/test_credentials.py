import dataclasses

import pytest

from tradfri.credentials import (
    DEFAULT_IDENTITY,
    Credentials,
    security_code_credentials,
)


def test_credentials_are_immutable():
    creds = Credentials("identity", "key")
    with pytest.raises(dataclasses.FrozenInstanceError):
        creds.key = "other"  # type: ignore[misc]
    assert dataclasses.replace(creds, key="other") == Credentials("identity", "other")


def test_secrets_not_in_repr():
    assert "secret" not in repr(Credentials("identity", "secret"))


def test_security_code_credentials():
    assert security_code_credentials("ABCD") == Credentials(DEFAULT_IDENTITY, "ABCD")
