# oauthkit/cli/consumer_cli.py
from typing import Optional

import typer
from typing_extensions import Annotated

from ..settings import get_settings
from ..tokens import Consumer, ConsumerStatus, SQLiteConsumerStore, TokenGenerator

app = typer.Typer(
    name="consumer",
    help="Manage registered consumers in the SQLite store.",
    no_args_is_help=True
)


def _store(db_path: Optional[str]) -> SQLiteConsumerStore:
    return SQLiteConsumerStore(db_path or get_settings().sqlite_db_path)


DbPathOption = Annotated[
    Optional[str],
    typer.Option("--db-path", help="SQLite database path; defaults to OAUTHKIT_SQLITE_DB_PATH.")
]


@app.command("add")
def add_consumer(
    key: Annotated[Optional[str], typer.Option(help="Consumer key; generated when omitted.")] = None,
    secret: Annotated[Optional[str], typer.Option(help="Consumer secret; generated when omitted.")] = None,
    name: Annotated[Optional[str], typer.Option(help="Display name of the application.")] = None,
    db_path: DbPathOption = None,
):
    """Register a new consumer and print its credentials."""
    generator = TokenGenerator(token_bytes=16)
    consumer = Consumer(
        key=key or generator.generate_token(),
        secret=secret if secret is not None else generator.generate_secret(),
        name=name,
    )
    if not _store(db_path).add_consumer(consumer):
        typer.secho(f"Error: consumer '{consumer.key}' already exists.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(f"Registered consumer '{consumer.key}'.", fg=typer.colors.GREEN)
    typer.echo(f"consumer_key={consumer.key}")
    typer.echo(f"consumer_secret={consumer.secret}")


@app.command("get")
def get_consumer(
    key: Annotated[str, typer.Argument(help="Consumer key.")],
    db_path: DbPathOption = None,
):
    """Show a registered consumer (the secret is not printed)."""
    consumer = _store(db_path).get_consumer(key)
    if consumer is None:
        typer.secho(f"Consumer '{key}' not found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    typer.echo(f"key={consumer.key}")
    typer.echo(f"name={consumer.name or ''}")
    typer.echo(f"status={consumer.status.value}")


@app.command("set-status")
def set_status(
    key: Annotated[str, typer.Argument(help="Consumer key.")],
    status: Annotated[ConsumerStatus, typer.Argument(help="New consumer status.")],
    db_path: DbPathOption = None,
):
    """Enable, throttle or blacklist a consumer."""
    store = _store(db_path)
    consumer = store.get_consumer(key)
    if consumer is None or not store.update_consumer(consumer.model_copy(update={"status": status})):
        typer.secho(f"Consumer '{key}' not found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    typer.secho(f"Consumer '{key}' is now {status.value}.", fg=typer.colors.GREEN)


@app.command("remove")
def remove_consumer(
    key: Annotated[str, typer.Argument(help="Consumer key.")],
    db_path: DbPathOption = None,
):
    """Remove a registered consumer."""
    if not _store(db_path).remove_consumer(key):
        typer.secho(f"Consumer '{key}' not found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    typer.secho(f"Removed consumer '{key}'.", fg=typer.colors.GREEN)
