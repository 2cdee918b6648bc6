"""Command line tool that prints the messages of a stream or the body of a
single signed request.
"""

from __future__ import annotations

import click
import logging
import sys

from json import dumps
from time import monotonic
from typing import Optional
from trio import run

from chirpwire.auth import Credentials
from chirpwire.errors import Error
from chirpwire.http import Request

from .config import ExecutorConfig
from .executor import RequestExecutor
from .stream import StreamExecutor, StreamMessage

__all__ = ("chirpwire_streamer",)


def parse_parameters(values: tuple[str, ...]) -> list[tuple[str, str]]:
    """Parses ``name=value`` strings given on the command line."""
    result = []
    for value in values:
        name, sep, param = value.partition("=")
        if not sep or not name:
            raise click.BadParameter(
                "expected name=value, got {0!r}".format(value), param_hint="--data"
            )
        result.append((name, param))
    return result


@click.command()
@click.argument("url")
@click.option(
    "--consumer-key",
    envvar="CHIRPWIRE_CONSUMER_KEY",
    required=True,
    help="the OAuth consumer key",
)
@click.option(
    "--consumer-secret",
    envvar="CHIRPWIRE_CONSUMER_SECRET",
    required=True,
    help="the OAuth consumer secret",
)
@click.option(
    "--token",
    envvar="CHIRPWIRE_ACCESS_TOKEN",
    default=None,
    help="the OAuth access token",
)
@click.option(
    "--token-secret",
    envvar="CHIRPWIRE_ACCESS_TOKEN_SECRET",
    default=None,
    help="the OAuth access token secret",
)
@click.option(
    "-d",
    "--data",
    metavar="NAME=VALUE",
    multiple=True,
    help="a request parameter; may be given multiple times",
)
@click.option(
    "--format",
    default="raw",
    type=click.Choice(["raw", "json"]),
    help=(
        "the output format. 'raw' prints each message on its own line. "
        "'json' prints the messages together with the number of milliseconds "
        "elapsed since the previous message, one JSON object per line."
    ),
)
@click.option(
    "--limit",
    type=int,
    default=None,
    help="close the stream after this many messages",
)
@click.option(
    "--get",
    "single",
    is_flag=True,
    default=False,
    help="send a single GET request and print the body instead of streaming",
)
@click.option("--user-agent", default=None, help="product token to add to the user agent")
@click.option("-v", "--verbose", is_flag=True, default=False, help="log debug messages")
def chirpwire_streamer(
    url: str,
    consumer_key: str,
    consumer_secret: str,
    token: Optional[str] = None,
    token_secret: Optional[str] = None,
    data: tuple[str, ...] = (),
    format: str = "raw",
    limit: Optional[int] = None,
    single: bool = False,
    user_agent: Optional[str] = None,
    verbose: bool = False,
):
    """Opens a signed stream at the given URL and copies its messages to the
    standard output until interrupted.

    Credentials may also be given in the CHIRPWIRE_CONSUMER_KEY,
    CHIRPWIRE_CONSUMER_SECRET, CHIRPWIRE_ACCESS_TOKEN and
    CHIRPWIRE_ACCESS_TOKEN_SECRET environment variables.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    credentials = Credentials(consumer_key, consumer_secret, token, token_secret)
    config = ExecutorConfig().with_user_agent(user_agent)
    parameters = parse_parameters(data)

    received = 0
    prev = monotonic()

    def print_message(message: StreamMessage) -> None:
        nonlocal prev, received

        if format == "json":
            now = monotonic()
            dt = int((now - prev) * 1000)
            prev = now
            print(dumps({"dt": dt, "content": message.content}))
        elif not message.is_keepalive:
            print(message.content)
        sys.stdout.flush()

        if message.is_keepalive:
            return

        received += 1
        if limit is not None and received >= limit:
            message.request_stop()

    async def main():
        if single:
            executor = RequestExecutor(credentials, config=config)
            print(await executor.get(Request.build(url, parameters)))
        else:
            streamer = StreamExecutor(
                credentials, config=config, callback=print_message
            )
            await streamer.stream(Request(url, parameters, method="POST"))
            print("Stream closed.", file=sys.stderr)

    try:
        run(main)
    except Error as ex:
        raise click.ClickException(str(ex)) from ex


if __name__ == "__main__":
    chirpwire_streamer()  # type: ignore
