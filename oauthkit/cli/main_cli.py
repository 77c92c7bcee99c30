# oauthkit/cli/main_cli.py
import logging
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from .. import problems
from ..constants import ParameterSources, SignatureMethods
from ..consumer.request import split_url
from ..nonces import NonceProvider
from ..parameters import OAuthParameters
from ..signing import RsaSha1SigningProvider, SigningProviderRegistry, build_base_string
from ..tokens import TokenGenerator
from . import consumer_cli

# Main CLI application with help enabled when no arguments are provided
app = typer.Typer(
    name="oauthkit",
    help="OAuth 1.0a signing and service provider tools.",
    no_args_is_help=True
)

app.add_typer(consumer_cli.app, name="consumer")


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False
):
    """
    oauthkit command line interface.
    Use 'oauthkit consumer --help' for consumer registry commands.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(name)s - [%(levelname)s] - %(message)s'
    )


@app.command("keygen")
def keygen():
    """Print a fresh consumer key and secret."""
    generator = TokenGenerator(token_bytes=16)
    typer.echo(f"consumer_key={generator.generate_token()}")
    typer.echo(f"consumer_secret={generator.generate_secret()}")


@app.command("sign")
def sign(
    method: Annotated[str, typer.Argument(help="HTTP method, e.g. GET or POST.")],
    url: Annotated[str, typer.Argument(help="Absolute request URL; its query string is signed.")],
    consumer_key: Annotated[str, typer.Option(help="Consumer key.")],
    consumer_secret: Annotated[str, typer.Option(help="Consumer secret.")] = "",
    token: Annotated[Optional[str], typer.Option(help="Request or access token.")] = None,
    token_secret: Annotated[Optional[str], typer.Option(help="Secret paired with the token.")] = None,
    param: Annotated[
        Optional[List[str]],
        typer.Option("--param", "-p", help="Extra signed parameter as name=value; repeatable.")
    ] = None,
    signature_method: Annotated[str, typer.Option(help="HMAC-SHA1, PLAINTEXT or RSA-SHA1.")] = SignatureMethods.HMAC_SHA1,
    private_key: Annotated[
        Optional[Path],
        typer.Option(help="PEM private key file for RSA-SHA1.", exists=True, dir_okay=False)
    ] = None,
    realm: Annotated[Optional[str], typer.Option(help="Realm for the Authorization header.")] = None,
    timestamp: Annotated[Optional[str], typer.Option(help="Fixed timestamp instead of the current time.")] = None,
    nonce: Annotated[Optional[str], typer.Option(help="Fixed nonce instead of a random one.")] = None,
    version: Annotated[Optional[str], typer.Option(help="oauth_version to send; empty to omit.")] = "1.0",
):
    """Sign a request and print the base string, signature and Authorization header."""
    registry = SigningProviderRegistry.default(plaintext_requires_secure_connection=False)
    if private_key is not None:
        registry.register(RsaSha1SigningProvider(private_key_pem=private_key.read_bytes()))

    signing_provider = registry.get(signature_method)
    if signing_provider is None:
        typer.secho(f"Error: unsupported signature method '{signature_method}'.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    nonce_provider = NonceProvider()
    parameters = OAuthParameters(
        consumer_key=consumer_key,
        signature_method=signature_method,
        timestamp=timestamp or nonce_provider.generate_timestamp(),
        nonce=nonce or nonce_provider.generate_nonce(),
        version=version or None,
        realm=realm,
        token=token,
        token_secret=token_secret,
    )
    base_url, query = split_url(url)
    extra = list(query)
    for item in param or []:
        name, separator, value = item.partition("=")
        if not separator:
            typer.secho(f"Error: --param expects name=value, got '{item}'.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        extra.append((name, value))
    for name, value in extra:
        parameters.additional_parameters.setdefault(name, []).append(value)

    base_string = build_base_string(method, base_url, parameters)
    parameters.signature = signing_provider.compute_signature(base_string, consumer_secret, token_secret)

    typer.echo(f"Base string: {base_string}")
    typer.echo(f"Signature: {parameters.signature}")
    typer.echo(f"Authorization: {parameters.to_header_format()}")


@app.command("parse-header")
def parse_header(
    header: Annotated[str, typer.Argument(help="An 'OAuth ...' Authorization or WWW-Authenticate header value.")]
):
    """Decode an OAuth header and report any Problem Reporting problem it carries."""
    parameters = OAuthParameters.parse(
        www_authenticate_header=header,
        sources=ParameterSources.WWW_AUTHENTICATE_HEADER,
    )
    items = parameters.reserved_items()
    for name, values in parameters.additional_parameters.items():
        items.extend((name, value) for value in values)
    if not items:
        typer.secho("No OAuth parameters found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    for name, value in items:
        typer.echo(f"{name}={value}")

    report = problems.extract_problem(parameters)
    if report is not None:
        typer.secho(f"Problem: {report}", fg=typer.colors.RED)


def cli_entry_point():
    """Entry point function for console script registration in pyproject.toml"""
    app()


if __name__ == "__main__":
    cli_entry_point()
