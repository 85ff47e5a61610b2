"""CLI entry point for api-client-gen."""

import json
import logging
from pathlib import Path

import click

from api_client_gen.client.config import load_client_config
from api_client_gen.client.factory import ApiClient
from api_client_gen.errors import ApiClientError
from api_client_gen.loader.detect import load_operations

FORMATS = ["auto", "interface", "openapi"]


def _parse_pairs(pairs: tuple[str, ...], option: str) -> dict[str, str]:
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint=option)
        result[key] = value
    return result


def _parse_json(text: str | None, option: str):
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint=option)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log compilation details to stderr.")
def main(verbose: bool):
    """API Client Gen: compile declarative API operations into HTTP requests."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="auto", type=click.Choice(FORMATS), help="Document format.")
def operations(doc_path: Path, fmt: str):
    """List the operations declared in a document."""
    try:
        specs = load_operations(doc_path, fmt)
    except ApiClientError as e:
        raise click.ClickException(str(e))

    click.echo(f"Found {len(specs)} operations.")
    for spec in specs:
        line = f"{spec.request.method} {spec.request.endpoint}" if spec.request else "<no request>"
        click.echo(f"  {spec.name}: {line}")


@main.command("compile")
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("operation")
@click.option("--format", "fmt", default="auto", type=click.Choice(FORMATS), help="Document format.")
@click.option("--base-url", envvar="API_BASE_URL", default=None, help="Overrides client.base_url of the document.")
@click.option("--arg", "args", multiple=True, help="Operation argument as name=value.")
@click.option("--headers-json", default=None, help="JSON object passed to the header-map parameter.")
@click.option("--body-json", default=None, help="JSON payload passed to the body parameter.")
@click.option("--query", multiple=True, help="Default query parameter as key=value.")
@click.option("--username", default=None, help="Basic-auth username.")
@click.option("--password", default="", help="Basic-auth password.")
@click.option("--insecure", is_flag=True, help="Disable TLS certificate verification.")
def compile_command(
    doc_path: Path,
    operation: str,
    fmt: str,
    base_url: str | None,
    args: tuple[str, ...],
    headers_json: str | None,
    body_json: str | None,
    query: tuple[str, ...],
    username: str | None,
    password: str,
    insecure: bool,
):
    """Compile one operation into a request descriptor (dry run, nothing is sent)."""
    overrides: dict = {}
    if base_url:
        overrides["base_url"] = base_url
    if query:
        overrides["query_params"] = _parse_pairs(query, "--query")
    if username:
        overrides["auth"] = {"username": username, "password": password}
    if insecure:
        overrides["disable_tls_verification"] = True

    arguments: dict = _parse_pairs(args, "--arg")
    try:
        config = load_client_config(doc_path, overrides)
        client = ApiClient(config, load_operations(doc_path, fmt))

        spec = client.operations.get(operation)
        if spec is None:
            raise click.ClickException(f"Unknown operation '{operation}'")
        header_maps = spec.params_with("header_map")
        if headers_json is not None and header_maps:
            arguments[header_maps[0].name] = _parse_json(headers_json, "--headers-json")
        bodies = spec.params_with("body")
        if body_json is not None and bodies:
            arguments[bodies[0].name] = _parse_json(body_json, "--body-json")

        descriptor = client.compile(operation, **arguments)
    except (ApiClientError, TypeError) as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(descriptor.model_dump(mode="json", exclude={"response_type"}), indent=2))
