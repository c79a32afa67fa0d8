"""Generation of PSK credentials on the gateway.

A new gateway only knows the security code printed on its label. Using
that code with the default identity, a client asks the gateway to issue a
pre-shared key for an identity of its choice. The key is shown once, store
it for later sessions.
"""

from __future__ import annotations

import logging

from .client import CoapClient
from .credentials import Credentials, security_code_credentials
from .shape import Structured

_LOGGER = logging.getLogger(__name__)

#: Resource issuing pre-shared keys
AUTH_PATH = ("15011", "9063")
#: Attribute holding the requested identity
ATTR_IDENTITY = "9090"
#: Attribute holding the issued key
ATTR_PSK = "9091"


def _psk_from_response(data: dict) -> str:
    return data[ATTR_PSK]


PSK_SHAPE: Structured[str] = Structured(_psk_from_response)


async def generate_psk(
    client: CoapClient, identity: str, security_code: str
) -> Credentials | None:
    """Request a PSK for identity and return the new credentials.

    The client is switched to the security code credentials for the request,
    returns None if the gateway could not be reached or refused.
    """
    if not await client.set_credentials(security_code_credentials(security_code)):
        _LOGGER.debug("Unable to connect using the security code")
        return None

    psk = await client.post(
        client.resource_uri(*AUTH_PATH), {ATTR_IDENTITY: identity}, PSK_SHAPE
    )
    if psk is None:
        return None

    _LOGGER.debug("Gateway issued a key for %s", identity)
    return Credentials(identity, psk)
