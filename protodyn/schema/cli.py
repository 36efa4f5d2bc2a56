"""Command-line interface for inspecting and exercising schemas."""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from protodyn.errors import ProtodynError
from protodyn.schema import Registry

if TYPE_CHECKING:
    from protodyn.dynamic import MessageHandle, MessageInfo


@contextlib.contextmanager
def _cli_errors() -> Iterator[None]:
    try:
        yield
    except (ProtodynError, OSError) as err:
        raise click.ClickException(str(err)) from err


def _parse_literal(text: str) -> Any:
    """Parse a command-line value as int, then float, falling back to text."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def _split_assignments(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[str, str]]:
    pairs = []
    for value in values:
        name, sep, text = value.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got '{value}'")
        pairs.append((name, text))
    return pairs


def _registry(ctx: click.Context) -> Registry:
    return Registry(ctx.obj["import_paths"] or (".",))


@click.group()
@click.option(
    "--import-path",
    "-I",
    "import_paths",
    multiple=True,
    type=click.Path(file_okay=False),
    envvar="PROTODYN_IMPORT_PATH",
    help="Directory searched for schemas and their imports (repeatable, default: .)",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log compilation details")
@click.pass_context
def cli(ctx: click.Context, import_paths: tuple[str, ...], verbose: bool) -> None:
    """Compile Protocol Buffers schemas at runtime and work with their messages."""
    ctx.ensure_object(dict)
    ctx.obj["import_paths"] = import_paths

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@cli.command()
@click.argument("schema")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def info(ctx: click.Context, schema: str, output_json: bool) -> None:
    """Display the message types declared in a schema."""
    registry = _registry(ctx)
    with _cli_errors():
        handles = registry.load_all(schema)

    infos = [handle.describe() for handle in handles]
    if output_json:
        click.echo(json.dumps([message.to_dict() for message in infos], indent=2))
    else:
        _output_messages(infos)


@cli.command()
@click.argument("directory", type=click.Path(file_okay=False))
@click.pass_context
def scan(ctx: click.Context, directory: str) -> None:
    """Load every schema below a directory and list the registered messages."""
    registry = _registry(ctx)
    with _cli_errors():
        registry.load_directory(directory)

    console = Console()
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Message", style="white")
    table.add_column("Full Name", style="dim")
    table.add_column("File", style="yellow")
    table.add_column("Fields", style="green", justify="right")

    for handle in registry:
        table.add_row(
            handle.name,
            handle.full_name,
            handle.descriptor.file.name,
            str(len(handle.descriptor.fields)),
        )

    console.print(table)
    console.print(f"{len(registry)} message types registered")


@cli.command()
@click.argument("schema")
@click.argument("message_type")
@click.option(
    "--field",
    "-f",
    "fields",
    multiple=True,
    callback=_split_assignments,
    help="name=value, value parsed as int, float or text",
)
@click.option(
    "--string",
    "-s",
    "strings",
    multiple=True,
    callback=_split_assignments,
    help="name=value, value always kept as text",
)
@click.option("--output", "-o", "output_file", default=None, help="Write raw bytes to a file")
@click.pass_context
def encode(
    ctx: click.Context,
    schema: str,
    message_type: str,
    fields: list[tuple[str, str]],
    strings: list[tuple[str, str]],
    output_file: str | None,
) -> None:
    """Encode a message built from field assignments."""
    registry = _registry(ctx)
    with _cli_errors():
        handle = registry.load(schema, message_type)
        for name, text in fields:
            handle.set_field(name, _parse_literal(text))
        for name, text in strings:
            handle.set_field(name, text)
        data = handle.encode()

    if output_file:
        with open(output_file, "wb") as f:
            f.write(data)
    else:
        click.echo(data.hex())


@cli.command()
@click.argument("schema")
@click.argument("message_type")
@click.argument("hex_data", required=False)
@click.option("--input", "-i", "input_file", default=None, help="Read raw bytes from a file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def decode(
    ctx: click.Context,
    schema: str,
    message_type: str,
    hex_data: str | None,
    input_file: str | None,
    output_json: bool,
) -> None:
    """Decode a message given as hex or read from a file."""
    if input_file:
        with open(input_file, "rb") as f:
            data = f.read()
    elif hex_data is not None:
        try:
            data = bytes.fromhex(hex_data)
        except ValueError as err:
            raise click.BadParameter(str(err), param_hint="HEX_DATA") from err
    else:
        raise click.UsageError("Provide HEX_DATA or --input")

    registry = _registry(ctx)
    with _cli_errors():
        handle = registry.load(schema, message_type)
        handle.decode(data)

    if output_json:
        click.echo(json.dumps(handle.to_dict(), indent=2))
    else:
        _output_fields(handle)


def _output_messages(infos: list[MessageInfo]) -> None:
    """Output message summaries using rich text formatting."""
    console = Console()

    for message in infos:
        console.print(f"[bold cyan]{message.full_name}[/bold cyan] [dim]({message.file})[/dim]")

        table = Table(show_header=True, box=None, padding=(0, 2, 0, 2))
        table.add_column("Field", style="white")
        table.add_column("Number", style="yellow", justify="right")
        table.add_column("Kind", style="white")
        table.add_column("Label", style="dim")
        table.add_column("Settable", style="green")

        for field in message.fields:
            table.add_row(
                field.name,
                str(field.number),
                field.kind,
                field.label,
                "yes" if field.settable else "",
            )

        console.print(table)
        console.print()


def _output_fields(handle: MessageHandle) -> None:
    """Output every field of a decoded message."""
    console = Console()
    console.print(f"[bold cyan]{handle.full_name}[/bold cyan]")

    table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value", style="white")

    for field in handle.descriptor.fields:
        table.add_row(field.name, repr(handle.get_field(field.name)))

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
