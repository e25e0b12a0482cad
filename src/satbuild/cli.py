"""
Command-line interface for satbuild.

This module provides the `satbuild` CLI tool for building Sega Saturn disc
images and cleaning build outputs.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from satbuild import __version__
from satbuild.build import BuildContext, BuildPipeline, BuildResult
from satbuild.commands import clean_project
from satbuild.config import ProjectConfig, find_config
from satbuild.errors import (
    ConfigurationError,
    PathResolutionError,
    SatbuildError,
    StageExecutionError,
)
from satbuild.output import init_timer, log_build_complete, log_header

console = Console()
error_console = Console(stderr=True)


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    config: Optional[Path] = None
    verbose: bool = False


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    project_dir: Path
    config: Optional[Path] = None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _report_error(title: str, error: BaseException) -> None:
    error_console.print()
    error_console.print(f"[bold red]✗ {title}[/bold red]")
    error_console.print(str(error), markup=False, highlight=False)


def _stage_table(result: BuildResult) -> Table:
    table = Table(title=f"{result.program}", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Stage")
    table.add_column("Status")
    table.add_column("Reason")
    for outcome in result.stages:
        status = "[green]built[/green]" if outcome.ran else "[dim]skipped[/dim]"
        table.add_row(str(outcome.stage.value), outcome.stage.label, status, outcome.reason)
    return table


def build_command(args: BuildArgs) -> None:
    """Build the disc image for a project.

    Examples:
        satbuild build                  # Build project in current directory
        satbuild build games/demo       # Build a specific project
        satbuild build -c other.ini     # Use another project file
        satbuild build --verbose        # Show commands and timestamps
    """
    init_timer()
    _configure_logging(args.verbose)
    log_header("satbuild", __version__)

    try:
        config = ProjectConfig(find_config(args.project_dir, args.config))
        spec = config.get_build_spec()
        toolchain = config.get_toolchain()
        context = BuildContext.create(
            spec=spec,
            toolchain=toolchain,
            verbose=args.verbose,
        )

        result = BuildPipeline(context).run()

        log_build_complete(result.build_time)
        console.print()
        if args.verbose:
            console.print(_stage_table(result))
        if result.up_to_date:
            console.print("[bold green]✓ Everything up to date[/bold green]")
        else:
            console.print("[bold green]✓ Build successful![/bold green]")
        console.print(f"Image: {result.iso_path}", markup=False, highlight=False)
        console.print(f"Cue:   {result.cue_path}", markup=False, highlight=False)
        sys.exit(0)

    except ConfigurationError as e:
        _report_error("Configuration error", e)
        sys.exit(1)

    except PathResolutionError as e:
        _report_error("Path resolution error", e)
        sys.exit(1)

    except StageExecutionError as e:
        _report_error(f"Build failed at stage '{e.stage}'", e)
        sys.exit(1)

    except SatbuildError as e:
        _report_error("Build failed", e)
        sys.exit(1)

    except OSError as e:
        _report_error("Filesystem error", e)
        sys.exit(1)

    except KeyboardInterrupt:
        error_console.print()
        error_console.print("[bold yellow]✗ Build interrupted[/bold yellow]")
        sys.exit(130)  # Standard exit code for SIGINT


def clean_command(args: CleanArgs) -> None:
    """Remove build outputs.

    Examples:
        satbuild clean                  # Clean project in current directory
        satbuild clean games/demo       # Clean a specific project
    """
    init_timer()
    _configure_logging(False)

    try:
        result = clean_project(args.project_dir, find_config(args.project_dir, args.config))
        console.print(f"[bold green]✓ Clean complete[/bold green] ({len(result.removed)} removed)")
        sys.exit(0)

    except OSError as e:
        _report_error("Clean failed", e)
        sys.exit(1)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="satbuild",
        description="Incremental builder for Sega Saturn disc images",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"satbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="{build,clean}")
    subparsers.required = True

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build the program and its disc image",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Project file, relative to the project directory (default: satbuild.ini)",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show commands, timestamps and a stage summary",
    )

    # Clean command
    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove build, image and audio directories and generated iso/cue files",
    )
    clean_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    clean_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Project file, relative to the project directory (default: satbuild.ini)",
    )

    parsed_args = parser.parse_args(argv)

    if not parsed_args.project_dir.is_dir():
        parser.error(f"Path is not a directory: {parsed_args.project_dir}")

    return parsed_args


def main(argv: Optional[List[str]] = None) -> None:
    """satbuild entry point."""
    parsed_args = _parse_args(argv)
    project_dir = parsed_args.project_dir.absolute()

    if parsed_args.command == "build":
        build_command(
            BuildArgs(
                project_dir=project_dir,
                config=parsed_args.config,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "clean":
        clean_command(
            CleanArgs(
                project_dir=project_dir,
                config=parsed_args.config,
            )
        )


if __name__ == "__main__":
    main()
