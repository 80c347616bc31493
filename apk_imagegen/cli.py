"""Thin CLI wrapper for apk_imagegen.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
import platform
import tempfile
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from apk_imagegen import __version__
from apk_imagegen.config import Settings, get_settings, print_settings_json
from apk_imagegen.errors import AssertionFailure, ImageGenError

app = typer.Typer(
    name="apk-imagegen",
    help="apk Image Generator - build reproducible images from apk manifests",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"apk-imagegen version {__version__}")
        raise typer.Exit()


def configure_logging(settings: Settings) -> None:
    """Route library logging to stderr at the configured level."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
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
) -> None:
    """apk Image Generator - build reproducible images from apk manifests."""


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

    tarball_dir_display = (
        str(settings.tarball_dir) if settings.tarball_dir else "(system default)"
    )
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Paths:[/bold]")
    console.print(f"  Work directory root: {settings.work_dir_root}")
    console.print(f"  Tarball directory:   {tarball_dir_display}")
    console.print()
    console.print("[bold]Tools:[/bold]")
    console.print(f"  apk binary:          {settings.apk_binary}")
    console.print(f"  proot binary:        {settings.proot_binary}")
    console.print()
    console.print("[bold]Operational:[/bold]")
    console.print(f"  Source date epoch:   {settings.source_date_epoch}")
    console.print(f"  Use proot:           {settings.use_proot}")
    console.print(f"  Log level:           {settings.log_level}")
    console.print(f"  Keyring timeout:     {settings.keyring_fetch_timeout}")


@app.command("show-config")
def show_config(
    config_path: Annotated[Path, typer.Argument(help="Path to image configuration")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Load, normalize and validate an image configuration, then show it."""
    from apk_imagegen.image.io import (
        configuration_to_json_string,
        configuration_to_yaml_string,
        load_image_configuration,
    )

    try:
        ic = load_image_configuration(config_path)
        ic.normalize()
        ic.validate_configuration()
    except ImageGenError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        console.print(configuration_to_json_string(ic))
    else:
        ic.summarize(emit=lambda line: console.print(line, markup=False))
        console.print()
        console.print(configuration_to_yaml_string(ic))


def _run_build(
    config_path: Path,
    output: Path,
    sbom: Path | None,
    arch: str | None,
    work_dir: Path | None,
    use_proot: bool | None,
    source_date_epoch: int | None,
) -> None:
    from apk_imagegen.build.apk import ApkCommandRunner
    from apk_imagegen.build.context import BuildContext
    from apk_imagegen.build.orchestrator import build_layer
    from apk_imagegen.image.architecture import select_architecture
    from apk_imagegen.image.io import load_image_configuration

    settings = get_settings()
    configure_logging(settings)

    try:
        ic = load_image_configuration(config_path)
        build_arch = select_architecture(
            ic.architectures(), requested=arch, host=platform.machine()
        )
        ic.summarize()

        if work_dir is None:
            settings.work_dir_root.mkdir(parents=True, exist_ok=True)
            work_dir = Path(
                tempfile.mkdtemp(prefix="apk-imagegen-", dir=settings.work_dir_root)
            )

        ctx = BuildContext(
            work_dir=work_dir,
            image_configuration=ic,
            package_manager=ApkCommandRunner(settings),
            arch=build_arch,
            sbom_path=sbom,
            use_proot=settings.use_proot if use_proot is None else use_proot,
            source_date_epoch=(
                settings.source_date_epoch
                if source_date_epoch is None
                else source_date_epoch
            ),
            tarball_dir=settings.tarball_dir,
            observer=lambda msg: err_console.print(f"[blue]{msg}[/blue]"),
        )
        path = build_layer(ctx, output=output)
    except AssertionFailure as e:
        console.print("[red]Assertions failed:[/red]")
        for message in e.messages:
            console.print(f"  - {escape(message)}")
        raise typer.Exit(code=1) from None
    except ImageGenError as e:
        console.print(f"[red]Build failed ({e.code}): {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    console.print(f"[green]✓ Wrote {path}[/green]")
    if sbom is not None:
        console.print(f"  SBOM: {sbom}")


@app.command()
def build(
    config_path: Annotated[Path, typer.Argument(help="Path to image configuration")],
    output: Annotated[Path, typer.Argument(help="Output layer tarball (.tar.gz)")],
    sbom: Annotated[
        Path | None,
        typer.Option("--sbom", help="Write a CycloneDX SBOM to this path"),
    ] = None,
    arch: Annotated[
        str | None,
        typer.Option(
            "--arch",
            "-a",
            help="Architecture to build (default: host if configured, else first)",
        ),
    ] = None,
    work_dir: Annotated[
        Path | None,
        typer.Option("--work-dir", help="Build directory (default: fresh temp dir)"),
    ] = None,
    use_proot: Annotated[
        bool | None,
        typer.Option("--use-proot/--no-proot", help="Run in-image commands via proot"),
    ] = None,
    source_date_epoch: Annotated[
        int | None,
        typer.Option("--source-date-epoch", help="Timestamp for archive entries"),
    ] = None,
) -> None:
    """Build an image filesystem and write its layer tarball."""
    _run_build(config_path, output, sbom, arch, work_dir, use_proot, source_date_epoch)


@app.command("build-minirootfs")
def build_minirootfs(
    config_path: Annotated[Path, typer.Argument(help="Path to image configuration")],
    output: Annotated[Path, typer.Argument(help="Output tarball (.tar.gz)")],
    arch: Annotated[
        str | None,
        typer.Option(
            "--arch",
            "-a",
            help="Architecture to build (default: host if configured, else first)",
        ),
    ] = None,
    work_dir: Annotated[
        Path | None,
        typer.Option("--work-dir", help="Build directory (default: fresh temp dir)"),
    ] = None,
) -> None:
    """Build a minimal root filesystem tarball without an SBOM."""
    _run_build(config_path, output, None, arch, work_dir, None, None)


__all__ = ["app"]
