from __future__ import annotations

import logging
import sys
from functools import wraps
from pathlib import Path
from typing import Optional, Tuple

import click

from . import __version__
from . import store as store_io
from .cli_helpers.display import (
    console,
    display_entries,
    display_environment,
    display_environments,
    display_error,
    display_info,
    display_success,
    display_warning,
)
from .exceptions import HostctlError, format_error_message
from .hosts_manager import HostsManager
from .log_config import setup_logging
from .models import HostEntry
from .settings import Settings
from .switcher import clear_active, switch_environment

__all__ = ["cli"]

logger = logging.getLogger("hostctl")


def handle_errors(func):
    """Report hostctl errors as a message and a non-zero exit status."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except HostctlError as e:
            logger.debug(f"{func.__name__} failed: {e.message} {e.details}")
            display_error(format_error_message(e))
            sys.exit(1)

    return wrapper


def _apply_hint(store: store_io.EnvironmentStore, env_name: str) -> None:
    if store.active == env_name:
        display_info(
            f"'{env_name}' is the active environment; run 'hostctl switch {env_name}' "
            "to update the hosts file."
        )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "config_path",
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    envvar="HOSTCTL_CONFIG",
    default=None,
    help="Path to the YAML configuration file. Defaults to the per-user config directory.",
)
@click.option(
    "--hosts-file",
    "hosts_path",
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    envvar="HOSTCTL_HOSTS_FILE",
    default=None,
    help="Hosts file to manage. Defaults to the system hosts file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging output.",
)
@click.version_option(__version__, prog_name="hostctl")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], hosts_path: Optional[Path], verbose: bool) -> None:
    """hostctl – manage hosts file with different environments."""
    settings = Settings.from_env()
    if config_path is not None:
        settings.config_path = config_path
    if hosts_path is not None:
        settings.hosts_path = hosts_path
    try:
        settings.validate()
    except ValueError as e:
        raise click.UsageError(str(e))

    setup_logging(verbose=verbose, log_file=settings.log_file, level=settings.log_level)
    logger.debug(f"hostctl started - config: {settings.config_path}, hosts: {settings.hosts_path}")
    ctx.obj = settings


@cli.command(name="list")
@click.pass_obj
@handle_errors
def list_environments(settings: Settings) -> None:
    """List all environments."""
    store = store_io.load(settings.config_path)
    summaries = store.list()
    if not summaries:
        console.print("No environments configured.")
        return
    display_environments(summaries)


@cli.command()
@click.pass_obj
@handle_errors
def current(settings: Settings) -> None:
    """Show the active environment."""
    store = store_io.load(settings.config_path)
    env = store.active_environment()
    if env is None:
        console.print("No environment is currently active.")
        return

    display_environment(env, active=True)

    try:
        rendered = HostsManager(settings.hosts_path).read_managed_entries()
    except HostctlError as e:
        display_warning(f"Could not inspect {settings.hosts_path}: {e.message}")
        return
    if rendered != env.entries:
        display_warning(
            f"The hosts file does not match '{env.name}'; "
            f"run 'hostctl switch {env.name}' to re-apply it."
        )


@cli.command()
@click.argument("name")
@click.option("--description", "-d", default=None, help="Environment description")
@click.pass_obj
@handle_errors
def add(settings: Settings, name: str, description: Optional[str]) -> None:
    """Create a new environment."""
    store = store_io.load(settings.config_path)
    store.create(name, description)
    store_io.save(store, settings.config_path)
    display_success(f"Environment '{name}' created successfully.")


@cli.command()
@click.argument("name")
@click.pass_obj
@handle_errors
def remove(settings: Settings, name: str) -> None:
    """Remove an environment."""
    store = store_io.load(settings.config_path)
    was_active = store.active == name
    store.remove(name)
    store_io.save(store, settings.config_path)
    display_success(f"Environment '{name}' removed successfully.")
    if was_active:
        display_warning(
            f"'{name}' was active; its entries stay in the hosts file until you "
            "switch to another environment or run 'hostctl clear'."
        )


@cli.command()
@click.argument("name")
@click.option("--backup", is_flag=True, help="Copy the hosts file to <hosts>.bak.<timestamp> first")
@click.pass_obj
@handle_errors
def switch(settings: Settings, name: str, backup: bool) -> None:
    """Switch the hosts file to an environment."""
    store = store_io.load(settings.config_path)
    result = switch_environment(
        store, name, settings.hosts_path, settings.config_path, backup=backup
    )
    if result.backup_path is not None:
        display_info(f"Backup written to {result.backup_path}")
    display_success(f"Switched to environment: {name} ({result.entry_count} entries)")


@cli.command()
@click.argument("name")
@click.pass_obj
@handle_errors
def show(settings: Settings, name: str) -> None:
    """Show details of an environment."""
    store = store_io.load(settings.config_path)
    env = store.get(name)
    display_environment(env, active=store.active == name)


@cli.command(name="add-entry")
@click.argument("environment")
@click.argument("address")
@click.argument("hostnames", nargs=-1, required=True)
@click.option("--comment", "-c", default=None, help="Comment rendered after the entry")
@click.option("--disabled", is_flag=True, help="Store the entry commented out")
@click.pass_obj
@handle_errors
def add_entry(
    settings: Settings,
    environment: str,
    address: str,
    hostnames: Tuple[str, ...],
    comment: Optional[str],
    disabled: bool,
) -> None:
    """Add a hosts entry to an environment."""
    store = store_io.load(settings.config_path)
    entry = store.add_entry(
        environment, HostEntry(address, list(hostnames), comment, enabled=not disabled)
    )
    store_io.save(store, settings.config_path)
    display_success(f"Entry added to environment '{environment}': {entry.to_line()}")
    _apply_hint(store, environment)


@cli.command(name="remove-entry")
@click.argument("environment")
@click.argument("hostname")
@click.pass_obj
@handle_errors
def remove_entry(settings: Settings, environment: str, hostname: str) -> None:
    """Remove a hosts entry from an environment."""
    store = store_io.load(settings.config_path)
    store.remove_entry(environment, hostname)
    store_io.save(store, settings.config_path)
    display_success(f"Entry removed from environment '{environment}': {hostname}")
    _apply_hint(store, environment)


def _toggle_entry(settings: Settings, environment: str, hostname: str, enabled: bool) -> None:
    store = store_io.load(settings.config_path)
    entry = store.set_entry_enabled(environment, hostname, enabled)
    store_io.save(store, settings.config_path)
    display_success(
        f"Entry {'enabled' if enabled else 'disabled'} in environment '{environment}': {hostname}"
    )
    display_entries([entry])
    _apply_hint(store, environment)


@cli.command(name="enable-entry")
@click.argument("environment")
@click.argument("hostname")
@click.pass_obj
@handle_errors
def enable_entry(settings: Settings, environment: str, hostname: str) -> None:
    """Re-enable a disabled hosts entry."""
    _toggle_entry(settings, environment, hostname, True)


@cli.command(name="disable-entry")
@click.argument("environment")
@click.argument("hostname")
@click.pass_obj
@handle_errors
def disable_entry(settings: Settings, environment: str, hostname: str) -> None:
    """Comment out a hosts entry without deleting it."""
    _toggle_entry(settings, environment, hostname, False)


@cli.command()
@click.option("--backup", is_flag=True, help="Copy the hosts file to <hosts>.bak.<timestamp> first")
@click.pass_obj
@handle_errors
def clear(settings: Settings, backup: bool) -> None:
    """Remove the managed block from the hosts file and deactivate."""
    store = store_io.load(settings.config_path)
    backup_path = clear_active(store, settings.hosts_path, settings.config_path, backup=backup)
    if backup_path is not None:
        display_info(f"Backup written to {backup_path}")
    display_success("Managed entries removed; no environment is active.")
