"""Command-line interface for docx-templater.

Provides commands for inspecting, repairing and filling Word templates.
"""

from pathlib import Path
from typing import Annotated

import typer

from . import TemplateSession, __version__

app = typer.Typer(
    name="docx-templater",
    help="Fill Word templates containing ${marker} placeholders.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docx-templater version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Fill Word templates containing ${marker} placeholders."""
    pass


@app.command()
def markers(
    file: Annotated[Path, typer.Argument(help="Path to the .docx template")],
) -> None:
    """List the markers found in a template."""
    try:
        with TemplateSession.from_file(file) as session:
            names = session.markers()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not names:
        typer.echo("No markers found")
        return
    for name in names:
        typer.echo(name)


@app.command()
def repair(
    file: Annotated[Path, typer.Argument(help="Path to the .docx template")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Join markers that Word split across several runs."""
    try:
        with TemplateSession.from_file(file) as session:
            count = session.repair()
            output_path = session.save(output or file)
        typer.echo(f"Repaired {count} marker(s) and saved to {output_path}")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def fill(
    file: Annotated[Path, typer.Argument(help="Path to the .docx template")],
    operations: Annotated[Path, typer.Argument(help="YAML or JSON file with operations")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    repair_first: Annotated[
        bool, typer.Option("--repair", help="Repair fragmented markers before filling")
    ] = False,
    stop_on_error: Annotated[
        bool, typer.Option("--stop-on-error", help="Stop at the first failed operation")
    ] = False,
) -> None:
    """Apply the operations in a YAML/JSON file to a template."""
    fmt = "json" if operations.suffix.lower() == ".json" else "yaml"

    try:
        with TemplateSession.from_file(file) as session:
            if repair_first:
                session.repair()
            results = session.apply_operation_file(
                operations, format=fmt, stop_on_error=stop_on_error
            )

            for result in results:
                typer.echo(str(result))

            failed = [r for r in results if not r.success]
            if failed:
                typer.echo(f"Error: {len(failed)} operation(s) failed; nothing saved", err=True)
                raise typer.Exit(1)

            output_path = session.save(output or file.with_name(f"{file.stem}_filled.docx"))
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Applied {len(results)} operation(s) and saved to {output_path}")


if __name__ == "__main__":
    app()
