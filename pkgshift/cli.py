"""Thin CLI wrapper for pkgshift.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from pkgshift import __version__
from pkgshift.config import Settings, get_settings, print_settings_json
from pkgshift.errors import PkgshiftError
from pkgshift.formats import UnknownFormatError, available_formats, get_format
from pkgshift.formats.base import PackageFormat

app = typer.Typer(
    name="pkgshift",
    help="pkgshift - convert binary packages between package families",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"pkgshift version {__version__}")
        raise typer.Exit()


def setup_logging(level: str) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """pkgshift - convert binary packages between package families."""
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)


def _load_format(
    format_name: str,
    settings: Settings,
    build_options: str | None = None,
    install_options: str | None = None,
) -> PackageFormat:
    try:
        format_cls = get_format(format_name)
    except UnknownFormatError:
        err_console.print(
            f"[red]Unknown format: {format_name} "
            f"(available: {', '.join(available_formats())})[/red]"
        )
        raise typer.Exit(code=1) from None

    return format_cls(
        settings,
        build_options=(
            settings.rpm_build_options if build_options is None else build_options
        ),
        install_options=(
            settings.rpm_install_options
            if install_options is None
            else install_options
        ),
    )


def _fail(error: PkgshiftError) -> NoReturn:
    err_console.print(f"[red]{error.stage.capitalize()} failed: {error}[/red]")
    raise typer.Exit(code=1)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    timeout_display = (
        str(settings.command_timeout) if settings.command_timeout else "(none)"
    )
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Paths:[/bold]")
    console.print(f"  Work directory:      {settings.work_dir}")
    console.print()
    console.print("[bold]Tools:[/bold]")
    console.print(f"  rpm:                 {settings.rpm_command}")
    console.print(f"  rpmbuild:            {settings.rpmbuild_command}")
    console.print(f"  rpm2cpio:            {settings.rpm2cpio_command}")
    console.print(f"  cpio:                {settings.cpio_command}")
    console.print()
    console.print("[bold]Operational:[/bold]")
    console.print(f"  Log level:           {settings.log_level}")
    console.print(f"  Noarch keyword:      {settings.noarch_keyword}")
    console.print(f"  Build options:       {settings.rpm_build_options}")
    console.print(f"  Install options:     {settings.rpm_install_options}")
    console.print(f"  Command timeout:     {timeout_display}")


@app.command("formats")
def formats_list() -> None:
    """List supported package formats."""
    for name in available_formats():
        console.print(name)


@app.command()
def scan(
    path: Annotated[Path, typer.Argument(help="Package file to scan")],
    format_name: Annotated[
        str,
        typer.Option("--format", "-f", help="Package format of the input"),
    ] = "rpm",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the metadata of a package file."""
    settings = get_settings()
    fmt = _load_format(format_name, settings)

    try:
        package = fmt.scan(path)
    except PkgshiftError as e:
        _fail(e)

    if json_output:
        data = package.model_dump(
            mode="json",
            exclude={"binary_info", "preinst", "postinst", "prerm", "postrm"},
        )
        data["scripts"] = sorted(
            slot
            for slot in ("preinst", "postinst", "prerm", "postrm")
            if package.get_script(slot) is not None
        )
        console.print(json.dumps(data, indent=2))
        return

    console.print(
        f"[bold]{package.full_name}[/bold] ({package.arch or 'builder default'})"
    )
    console.print(f"  Summary:      {package.summary}")
    console.print(f"  License:      {package.copyright}")
    console.print(f"  Distribution: {package.distribution}")
    if package.prefixes:
        console.print(f"  Prefix:       {package.prefixes}")
    console.print(f"  Files:        {len(package.file_list)}")
    console.print(f"  Conffiles:    {len(package.conffiles)}")
    for slot in ("preinst", "postinst", "prerm", "postrm"):
        if package.get_script(slot) is not None:
            console.print(f"  Script:       {slot}")


@app.command()
def convert(
    path: Annotated[Path, typer.Argument(help="Package file to convert")],
    format_name: Annotated[
        str,
        typer.Option("--format", "-f", help="Package format of the input"),
    ] = "rpm",
    workdir: Annotated[
        Path | None,
        typer.Option("--workdir", "-w", help="Where to create the working tree"),
    ] = None,
    build_options: Annotated[
        str | None,
        typer.Option("--build-options", help="Extra options for the build tool"),
    ] = None,
) -> None:
    """Unpack a package and rebuild it."""
    settings = get_settings()
    fmt = _load_format(format_name, settings, build_options=build_options)

    try:
        _, artifact = fmt.convert(path, workdir)
    except PkgshiftError as e:
        _fail(e)

    console.print(f"[green]{artifact} generated[/green]")


@app.command()
def install(
    path: Annotated[Path, typer.Argument(help="Package file to install")],
    format_name: Annotated[
        str,
        typer.Option("--format", "-f", help="Package format"),
    ] = "rpm",
    options: Annotated[
        str | None,
        typer.Option("--options", help="Extra options for the installer"),
    ] = None,
) -> None:
    """Install a package file."""
    settings = get_settings()
    fmt = _load_format(format_name, settings, install_options=options)

    try:
        fmt.install(path)
    except PkgshiftError as e:
        _fail(e)

    console.print(f"[green]Installed {path}[/green]")


if __name__ == "__main__":
    app()
