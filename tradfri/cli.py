"""Command line tool for talking to a gateway."""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, NoReturn

import asyncclick as click

from .auth import generate_psk
from .client import CoapClient
from .codec import decode_json, encode
from .credentials import Credentials
from .exceptions import DecodeError
from .gatewayconfig import GatewayConfig
from .shape import JSON, RAW_TEXT

pass_client = click.make_pass_decorator(CoapClient)


def echo(*args, **kwargs) -> None:
    """Print a message."""
    click.echo(*args, **kwargs)


def error(msg: str) -> NoReturn:
    """Print an error and exit."""
    click.echo(msg, err=True)
    sys.exit(1)


def _output(value: Any, as_json: bool) -> None:
    if as_json:
        echo(encode(value, indent=True))
    else:
        echo(value)


def _locator(client: CoapClient, path: str) -> str:
    """Return path as a full locator, relative paths are on the gateway."""
    if "://" in path:
        return path
    return client.resource_uri(*path.strip("/").split("/"))


def _payload(payload: str) -> Any:
    try:
        return decode_json(payload)
    except DecodeError as ex:
        raise click.BadParameter(f"Payload is not valid JSON: {ex}") from ex


@click.group()
@click.option(
    "--host",
    envvar="TRADFRI_HOST",
    required=True,
    help="The host name or IP address of the gateway.",
)
@click.option(
    "--port",
    envvar="TRADFRI_PORT",
    default=GatewayConfig.DEFAULT_PORT,
    show_default=True,
    type=int,
    help="The CoAP over DTLS port of the gateway.",
)
@click.option(
    "--identity",
    envvar="TRADFRI_IDENTITY",
    required=False,
    help="PSK identity.",
)
@click.option(
    "--key",
    envvar="TRADFRI_KEY",
    required=False,
    help="PSK for the identity.",
)
@click.option(
    "--timeout",
    envvar="TRADFRI_TIMEOUT",
    default=GatewayConfig.DEFAULT_TIMEOUT,
    show_default=True,
    type=int,
    help="Timeout for gateway requests in milliseconds.",
)
@click.option(
    "-d",
    "--debug",
    envvar="TRADFRI_DEBUG",
    default=False,
    is_flag=True,
    help="Print debug output",
)
@click.option(
    "--json/--no-json",
    envvar="TRADFRI_JSON",
    default=False,
    is_flag=True,
    help="Output raw gateway response as JSON.",
)
@click.version_option(package_name="python-tradfri-coap")
@click.pass_context
async def cli(ctx, host, port, identity, key, timeout, debug, json):
    """A tool for talking to an IKEA TRÅDFRI gateway over CoAP."""
    logging_config: dict[str, Any] = {
        "level": logging.DEBUG if debug else logging.INFO
    }
    try:
        from rich.logging import RichHandler

        logging_config["handlers"] = [RichHandler(show_time=False)]
        logging_config["format"] = "%(message)s"
    except ImportError:
        pass
    logging.basicConfig(**logging_config)

    if bool(identity) != bool(key):
        raise click.BadOptionUsage(
            "identity", "Using a PSK requires both --identity and --key"
        )

    credentials = Credentials(identity, key) if identity else None
    config = GatewayConfig(host, port=port, timeout=timeout, credentials=credentials)
    client = CoapClient(config)

    @asynccontextmanager
    async def async_wrapped_client(client: CoapClient):
        try:
            yield client
        finally:
            await client.close()

    ctx.obj = await ctx.with_async_resource(async_wrapped_client(client))


async def _connect(client: CoapClient) -> None:
    if client.credentials is None:
        error("This command requires --identity and --key")
    if not await client.connect():
        error(f"Unable to connect to {client.config.host}: {client.last_error}")


@cli.command()
@click.argument("path")
@click.pass_context
@pass_client
async def get(client: CoapClient, ctx: click.Context, path: str):
    """Get the resource at PATH."""
    await _connect(client)
    as_json = ctx.find_root().params["json"]
    result = await client.get(_locator(client, path), JSON if as_json else RAW_TEXT)
    if result is None:
        error(f"No response for {path}")
    _output(result, as_json)
    return result


@cli.command()
@click.argument("path")
@click.argument("payload")
@click.pass_context
@pass_client
async def put(client: CoapClient, ctx: click.Context, path: str, payload: str):
    """Send PAYLOAD (JSON) to the resource at PATH."""
    data = _payload(payload)
    await _connect(client)
    as_json = ctx.find_root().params["json"]
    result = await client.put(
        _locator(client, path), data, JSON if as_json else RAW_TEXT
    )
    if result is None:
        error(f"No response for {path}")
    _output(result, as_json)
    return result


@cli.command()
@click.argument("path")
@click.argument("payload")
@click.pass_context
@pass_client
async def post(client: CoapClient, ctx: click.Context, path: str, payload: str):
    """Post PAYLOAD (JSON) to the resource at PATH."""
    data = _payload(payload)
    await _connect(client)
    as_json = ctx.find_root().params["json"]
    result = await client.post(
        _locator(client, path), data, JSON if as_json else RAW_TEXT
    )
    if result is None:
        error(f"No response for {path}")
    _output(result, as_json)
    return result


@cli.command()
@click.argument("path")
@click.option(
    "--count",
    default=0,
    type=int,
    help="Stop after this many notifications, 0 runs until interrupted.",
)
@click.pass_context
@pass_client
async def observe(client: CoapClient, ctx: click.Context, path: str, count: int):
    """Print notifications for the resource at PATH."""
    await _connect(client)
    as_json = ctx.find_root().params["json"]
    received = 0
    done = asyncio.Event()

    def _notification(value: Any) -> None:
        nonlocal received
        received += 1
        _output(value, as_json)
        if count and received >= count:
            done.set()

    def _error(ex: BaseException) -> None:
        echo(f"Observation of {path} ended: {ex}", err=True)
        done.set()

    subscription = await client.observe(
        _locator(client, path),
        _notification,
        JSON if as_json else RAW_TEXT,
        error_handler=_error,
    )
    try:
        await done.wait()
    finally:
        subscription.cancel()
    return received


@cli.command()
@click.option(
    "--security-code",
    envvar="TRADFRI_SECURITY_CODE",
    required=True,
    help="Security code printed on the gateway.",
)
@click.option(
    "--identity",
    "new_identity",
    required=True,
    help="Identity to generate a PSK for.",
)
@pass_client
async def auth(client: CoapClient, security_code: str, new_identity: str):
    """Generate a PSK for a new identity using the security code."""
    credentials = await generate_psk(client, new_identity, security_code)
    if credentials is None:
        error("Unable to generate a PSK, check the security code")
    echo(f"Identity: {credentials.identity}")
    echo(f"Key: {credentials.key}")
    return credentials


if __name__ == "__main__":
    cli()
