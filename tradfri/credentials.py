"""Credentials class for PSK identity / key pairs."""

from __future__ import annotations

from dataclasses import dataclass, field

#: Identity the gateway accepts together with the security code on its label
DEFAULT_IDENTITY = "Client_identity"


@dataclass(frozen=True)
class Credentials:
    """Pre-shared key credentials for the gateway."""

    #: PSK identity registered on the gateway
    identity: str = field(default="", repr=False)
    #: PSK secret for the identity
    key: str = field(default="", repr=False)


def security_code_credentials(security_code: str) -> Credentials:
    """Return the credentials used to request a new PSK from the gateway."""
    return Credentials(DEFAULT_IDENTITY, security_code)
