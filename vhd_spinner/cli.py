"""
CLI setup and entry points.

Defines the ``provision`` and ``generate-changelog`` Click commands.
"""

import sys
from pathlib import Path

import click
from rich.markup import escape

from vhd_spinner import __version__
from vhd_spinner.commands import (
    generate_changelog,
    get_available_profiles,
    list_profiles,
    provision_vm,
)
from vhd_spinner.config import load_settings
from vhd_spinner.errors import SpinnerError
from vhd_spinner.log import RunLog
from vhd_spinner.utils import console


class ProvisionCommand(click.Command):
    """Command whose help text ends with the profiles currently available."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        try:
            profiles = get_available_profiles(load_settings())
        except SpinnerError as exc:
            profiles = []
            note = f"(could not load profiles: {exc})"
        else:
            note = "(none)"

        with formatter.section("Available VM profiles (ISO found)"):
            for name in profiles:
                formatter.write_text(f"- {name}")
            if not profiles:
                formatter.write_text(note)
        super().format_epilog(ctx, formatter)


@click.command(cls=ProvisionCommand)
@click.version_option(version=__version__, prog_name="vhd-spinner")
@click.argument("vm_name", required=False)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Simulate provisioning without making changes"
)
@click.option(
    "--list", "list_only",
    is_flag=True,
    help="Show available profiles"
)
@click.option(
    "--details",
    is_flag=True,
    help="With --list, show each profile's OS variant, memory and vCPUs"
)
@click.pass_context
def provision(ctx: click.Context, vm_name: str | None, dry_run: bool, list_only: bool, details: bool):
    """
    Provision a VM using available profiles.

    VM_NAME is the name of an ISO in the images directory without its
    .iso suffix; it also becomes the name of the VM.
    """
    try:
        settings = load_settings()
    except SpinnerError as exc:
        console.print(f"[bold red]ERROR:[/] {escape(str(exc))}", highlight=False)
        sys.exit(1)

    if list_only:
        list_profiles(settings, as_table=details)
        return

    if not vm_name:
        click.echo(ctx.get_help())
        return

    log = RunLog(settings.log_file)
    try:
        provision_vm(vm_name, settings, log, dry_run=dry_run)
    except SpinnerError as exc:
        log.error(str(exc))
        sys.exit(1)
    finally:
        log.close()


@click.command()
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("CHANGELOG.md"),
    show_default=True,
    help="File to write"
)
def changelog(output: Path):
    """Generates CHANGELOG.md from Git commit history."""
    try:
        generate_changelog(output)
    except SpinnerError as exc:
        console.print(f"[bold red]ERROR:[/] {escape(str(exc))}", highlight=False)
        sys.exit(1)
