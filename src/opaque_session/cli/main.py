"""CLI entry point for opaque-session.

Invoked as::

    opaque-session [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m opaque_session.cli.main

Commands
--------
- version  - Show version information
- keygen   - Print a fresh 256-bit key as hex
- encrypt  - Seal a value into a token
- decrypt  - Open a token
- inspect  - Show the byte layout of a token without decrypting it
"""
from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from opaque_session.encryption import (
    DEFAULT_ALGORITHM,
    SUPPORTED_ALGORITHMS,
    TokenEncryptor,
    TokenParts,
)
from opaque_session.errors import ConfigurationError, DecryptionError

console = Console()

_key_option = click.option(
    "--key",
    envvar="SESSION_ENCRYPTION_KEY",
    required=True,
    help="Hex-encoded 256-bit key (or set SESSION_ENCRYPTION_KEY).",
)
_algorithm_option = click.option(
    "--algorithm",
    default=DEFAULT_ALGORITHM,
    show_default=True,
    type=click.Choice(sorted(SUPPORTED_ALGORITHMS), case_sensitive=False),
    help="AEAD algorithm.",
)


def _make_encryptor(key: str, algorithm: str) -> TokenEncryptor:
    try:
        return TokenEncryptor(key, algorithm)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(2)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="opaque-session")
def cli() -> None:
    """Opaque encrypted session tokens"""


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from opaque_session import __version__

    console.print(f"[bold]opaque-session[/bold] v{__version__}")


@cli.command(name="keygen")
def keygen_command() -> None:
    """Print a new random key suitable for SESSION_ENCRYPTION_KEY."""
    click.echo(TokenEncryptor.generate_key())


# ---------------------------------------------------------------------------
# encrypt / decrypt
# ---------------------------------------------------------------------------


@cli.command(name="encrypt")
@click.argument("value")
@_key_option
@_algorithm_option
def encrypt_command(value: str, key: str, algorithm: str) -> None:
    """Seal VALUE into a hex token."""
    click.echo(_make_encryptor(key, algorithm).encrypt(value))


@cli.command(name="decrypt")
@click.argument("token")
@_key_option
@_algorithm_option
def decrypt_command(token: str, key: str, algorithm: str) -> None:
    """Open TOKEN and print the sealed value."""
    encryptor = _make_encryptor(key, algorithm)
    try:
        click.echo(encryptor.decrypt(token))
    except DecryptionError as exc:
        console.print(f"[red]Invalid token:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


@cli.command(name="inspect")
@click.argument("token")
def inspect_command(token: str) -> None:
    """Show the nonce, ciphertext and tag sections of TOKEN."""
    try:
        parts = TokenParts.from_hex(token)
    except DecryptionError as exc:
        console.print(f"[red]Invalid token:[/red] {exc}")
        sys.exit(1)

    table = Table(title="Token layout", show_lines=True)
    table.add_column("Section", style="bold cyan")
    table.add_column("Bytes", justify="right")
    table.add_column("Hex")
    table.add_row("nonce", str(len(parts.nonce)), parts.nonce.hex())
    table.add_row("ciphertext", str(len(parts.ciphertext)), parts.ciphertext.hex())
    table.add_row("tag", str(len(parts.tag)), parts.tag.hex())
    console.print(table)


if __name__ == "__main__":
    cli()
