import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click

from pagerduty_rest.client import PagerDutyApi
from pagerduty_rest.config import Settings
from pagerduty_rest.exceptions import ConfigurationError, PagerDutyApiError
from pagerduty_rest.logger import setup_logging
from pagerduty_rest.models import ClientConfig


def parse_body(
    _ctx: click.Context, _param: click.Parameter, value: str | None
) -> Any:
    """JSON body given inline or as @path/to/file.json."""
    if value is None:
        return None
    if value.startswith("@"):
        try:
            value = Path(value[1:]).read_text(encoding="utf-8")
        except OSError as e:
            raise click.BadParameter(f"cannot read {value[1:]}: {e}") from e
    try:
        return json.loads(value)
    except ValueError as e:
        raise click.BadParameter(f"invalid JSON: {e}") from e


def parse_headers(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    headers = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected 'Name: value', got {value!r}")
        headers[name.strip()] = content.strip()
    return headers


def run[R](ctx: click.Context, call: Callable[[PagerDutyApi], Awaitable[R]]) -> R:
    async def main() -> R:
        async with PagerDutyApi(config=ctx.obj["config"]) as api:
            return await call(api)

    try:
        return asyncio.run(main())
    except ConfigurationError as e:
        raise click.UsageError(e.message, ctx=ctx) from e
    except PagerDutyApiError as e:
        raise click.ClickException(e.message) from e


def print_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


body_option = click.option(
    "--body",
    required=True,
    callback=parse_body,
    help="JSON request body, or @file to read it from a file.",
)
header_option = click.option(
    "--header",
    "headers",
    multiple=True,
    callback=parse_headers,
    help="Additional header as 'Name: value'. Can be repeated.",
)


@click.group()
@click.option("--token", default=None, help="PagerDuty access token.")
@click.option(
    "--timeout", type=float, default=None, help="Timeout in seconds per request."
)
@click.option("--base-url", default=None, help="PagerDuty API base URL.")
@click.option(
    "--max-pages", type=int, default=None, help="Abort GETs needing more pages."
)
@click.option("--log-level", default=None, help="Logging level.")
@click.option(
    "--log-json/--no-log-json", default=None, help="JSON formatted log output."
)
@click.pass_context
def root(
    ctx: click.Context,
    token: str | None,
    timeout: float | None,
    base_url: str | None,
    max_pages: int | None,
    log_level: str | None,
    log_json: bool | None,
) -> None:
    ctx.ensure_object(dict)
    settings = Settings()
    setup_logging(
        log_level or settings.log_level,
        json_format=settings.log_format_json if log_json is None else log_json,
    )
    ctx.obj["config"] = ClientConfig.resolve(
        token,
        timeout,
        base_url=base_url,
        max_pages=max_pages,
        settings=settings,
    )


@root.command()
@click.argument("path")
@click.option("--key", default=None, help="Response body property to return.")
@click.pass_context
def get(ctx: click.Context, path: str, key: str | None) -> None:
    """GET PATH, following pagination, and print all results."""
    print_json(run(ctx, lambda api: api.get(path, key=key)))


@root.command()
@click.argument("path")
@body_option
@header_option
@click.pass_context
def post(ctx: click.Context, path: str, body: Any, headers: dict[str, str]) -> None:
    """POST a JSON body to PATH."""
    response = run(ctx, lambda api: api.post(path, body, headers=headers))
    print_json(response.body)


@root.command()
@click.argument("path")
@body_option
@header_option
@click.pass_context
def put(ctx: click.Context, path: str, body: Any, headers: dict[str, str]) -> None:
    """PUT a JSON body to PATH."""
    response = run(ctx, lambda api: api.put(path, body, headers=headers))
    print_json(response.body)


@root.command()
@click.argument("path")
@click.pass_context
def delete(ctx: click.Context, path: str) -> None:
    """DELETE PATH."""
    response = run(ctx, lambda api: api.delete(path))
    if response.body:
        print_json(response.body)
