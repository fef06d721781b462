#!/usr/bin/env python3
"""
Group Management CLI

Command-line interface for managing named groups of SAML-federated AWS
account roles.

Commands:
    list        Show all groups with session status and role ARNs
    add         Resolve accounts for a role and store them as a group
    delete      Remove a group

Usage:
    saml2aws-groups list
    saml2aws-groups add NAME --mfa TOKEN --role ROLE (--business-unit BU | --accounts NAME...)
    saml2aws-groups delete GROUP

Module: cli
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click
import structlog

from .auth.role_lister import RoleLister, RoleListError, Saml2AwsRoleLister
from .config_store import ConfigStore, ConfigStoreError
from .groups import GroupManager, GroupNotFoundError, parse_session_duration
from .logging_config import configure_logging
from .report import ReportStyle, build_group_view, build_report, format_arns, format_group
from .selector import BusinessUnitSelection, SelectionConflictError, build_selection, select_accounts
from .settings import Settings, get_settings
from .version import __version__

logger = structlog.get_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONSOLE_STYLE = ReportStyle(
    group_name=lambda text: click.style(text, fg="yellow"),
    value=lambda text: click.style(text, fg="blue"),
    active=lambda text: click.style(text, fg="green"),
    inactive=lambda text: click.style(text, fg="red"),
    account_id=lambda text: click.style(text, fg="red"),
)


@dataclass
class CliContext:
    settings: Settings
    store: ConfigStore
    verbose: bool = False

    def manager(self, backup: bool = True) -> GroupManager:
        return GroupManager(self.store, backup=backup)


def make_role_lister(settings: Settings, mfa: str, password: Optional[str]) -> RoleLister:
    return Saml2AwsRoleLister(
        mfa_token=mfa,
        password=password,
        binary=settings.saml2aws_bin,
        idp_account=settings.idp_account,
        timeout=settings.list_roles_timeout,
    )


def handle_error(error: Exception, verbose: bool = False) -> None:
    """Handle and format errors"""
    logger.debug("Command failed", error=str(error), error_type=type(error).__name__)
    if verbose:
        click.echo(f"Error: {type(error).__name__}: {error}", err=True)
        import traceback

        traceback.print_exc()
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _split_account_names(values: tuple[str, ...]) -> list[str]:
    names = []
    for value in values:
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return names


@click.group()
@click.version_option(version=__version__, prog_name="saml2aws-groups")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Configuration directory (default: ~/.config/saml2aws-groups)",
)
@click.option("--profile", "-p", default=None, help="Configuration profile (default: default)")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level for diagnostics on stderr",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose error output")
@click.pass_context
def cli(
    ctx: click.Context,
    config_dir: Optional[Path],
    profile: Optional[str],
    log_level: Optional[str],
    verbose: bool,
):
    """
    SAML2AWS Group Manager

    Bundles the accounts you can reach with one role into a named group,
    so credentials for all of them can be requested under one label.
    """
    settings = get_settings()
    if config_dir is not None:
        settings.config_dir = config_dir
    if profile:
        settings.profile = profile
    if log_level:
        settings.log_level = log_level.upper()

    configure_logging(settings.log_level, settings.json_logs)

    ctx.obj = CliContext(
        settings=settings,
        store=ConfigStore(base_dir=settings.config_dir, profile=settings.profile),
        verbose=verbose,
    )


@cli.command(name="list")
@click.pass_obj
def list_groups(obj: CliContext):
    """
    List all groups with their sessions and role ARNs

    Examples:
        saml2aws-groups list
        saml2aws-groups --profile work list
    """
    try:
        config = obj.manager().load()
    except ConfigStoreError as e:
        handle_error(e, obj.verbose)
        return

    if not config.groups:
        click.echo("No groups configured.")
        return

    for view in build_report(config):
        for line in format_group(view, CONSOLE_STYLE):
            click.echo(line)


@cli.command(name="profiles")
@click.pass_obj
def list_profiles(obj: CliContext):
    """
    List configuration profiles that hold groups

    Examples:
        saml2aws-groups profiles
    """
    for profile in obj.store.list_profiles():
        marker = "*" if profile == obj.store.profile else " "
        click.echo(f"{marker} {profile}")


@cli.command()
@click.argument("group", type=str)
@click.option("--backup/--no-backup", default=True, help="Create backup before writing", show_default=True)
@click.pass_obj
def delete(obj: CliContext, group: str, backup: bool):
    """
    Delete a group

    Examples:
        saml2aws-groups delete prod
    """
    try:
        obj.manager(backup=backup).delete(group)
    except GroupNotFoundError:
        click.echo(
            f"\nCould not delete the group {click.style(group, fg='yellow')}:\n\n"
            f"\t{click.style('The specified group does not exist', fg='red')}\n"
        )
        return
    except ConfigStoreError as e:
        handle_error(e, obj.verbose)
        return

    click.echo(f"\nSuccessfully deleted group {click.style(group, fg='yellow')}.\n")


@cli.command()
@click.argument("name", type=str)
@click.option("--mfa", "-m", required=True, help="MFA token passed to saml2aws")
@click.option("--role", "-r", required=True, help="Role name every account in the group must grant")
@click.option("--password", default=None, help="IdP password passed to saml2aws")
@click.option(
    "--session-duration",
    "-s",
    default=None,
    help="Session duration in seconds (default: 3600; invalid values fall back to 3600)",
)
@click.option("--business-unit", "-b", default=None, help="Select accounts whose name starts with this prefix")
@click.option(
    "--accounts",
    "-a",
    multiple=True,
    help="Select accounts by name (repeatable, or comma-separated)",
)
@click.option("--backup/--no-backup", default=True, help="Create backup before writing", show_default=True)
@click.pass_obj
def add(
    obj: CliContext,
    name: str,
    mfa: str,
    role: str,
    password: Optional[str],
    session_duration: Optional[str],
    business_unit: Optional[str],
    accounts: tuple[str, ...],
    backup: bool,
):
    """
    Add a group, or replace the accounts of an existing one

    Examples:
        saml2aws-groups add prod --mfa 123456 --role Admin --business-unit prod-
        saml2aws-groups add core --mfa 123456 --role ReadOnly -a billing -a audit
        saml2aws-groups add core --mfa 123456 --role ReadOnly --accounts billing,audit -s 7200
    """
    duration = parse_session_duration(session_duration)

    try:
        selection = build_selection(business_unit, _split_account_names(accounts))
    except SelectionConflictError as e:
        click.echo(
            f"\nCould not add group {click.style(name, fg='yellow')}:\n\n\t{click.style(str(e), fg='red')}\n",
            err=True,
        )
        sys.exit(1)

    lister = make_role_lister(obj.settings, mfa, password)

    click.echo("Listing allowed roles for your account...", nl=False)
    try:
        selected = select_accounts(selection, role, lister)
    except RoleListError as e:
        target = "business unit" if isinstance(selection, BusinessUnitSelection) else "accounts by names"
        click.echo(
            f"\nCould not list roles for {target}:\n\n\t{click.style(e.description, fg='red')}\n",
            err=True,
        )
        sys.exit(1)
    click.echo(f"\t{click.style('SUCCESS', fg='green')}")

    try:
        result = obj.manager(backup=backup).add(name, duration, selected)
    except ConfigStoreError as e:
        handle_error(e, obj.verbose)
        return

    if result.replaced:
        click.echo(f"Group {name} exists, replacing accounts")
    else:
        click.echo(f"Adding group {name}")

    click.echo(f"\n{click.style(name, fg='yellow')}:")
    if not result.group.accounts:
        click.echo("\tNo accounts matched the selection")
    for line in format_arns(build_group_view(name, result.group), CONSOLE_STYLE):
        click.echo(line)

    click.echo("\nGroup configuration updated")


def main():
    cli()


if __name__ == "__main__":
    main()
