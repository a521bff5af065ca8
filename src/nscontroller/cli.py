"""Supervisor Namespace CLI (vsn).

Drives the lifecycle of Supervisor Namespaces against a VCF Automation
endpoint and keeps the local state file in step with it.

Usage:
    vsn apply namespace.yaml            # Create if not yet managed
    vsn show my-project:my-ns-x7k2p     # Refresh and print state
    vsn delete my-project:my-ns-x7k2p   # Delete and wait until gone
    vsn import my-project.my-ns-x7k2p   # Attach an existing namespace
    vsn list                            # List managed namespaces

Connection and timing settings come from the environment (see
``Settings.from_env``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click
import yaml

from .client import ControlPlaneClient
from .config import ConfigurationError, Settings
from .config_loader import load_declared_config
from .errors import InvalidConfigError, NotFoundError, SupervisorNamespaceError
from .main import run_cancellable, setup_logging
from .models import SupervisorNamespaceConfig, SupervisorNamespaceState
from .resource import SupervisorNamespaceResource, diff_immutable_fields
from .state_store import StateStore, StateStoreError

T = TypeVar("T")

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Exit codes
EXIT_DOMAIN_ERROR = 1
EXIT_CONFIG_ERROR = 2


class ConfigError(click.ClickException):
    """Invalid settings or declared configuration."""

    exit_code = EXIT_CONFIG_ERROR


class Context:
    """Per-invocation objects shared by the commands."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.store = StateStore(settings.state_file)

    def run(
        self, operation: Callable[[SupervisorNamespaceResource, asyncio.Event], Awaitable[T]]
    ) -> T:
        """Run one lifecycle operation with a fresh client."""
        with ControlPlaneClient.from_settings(self.settings) as client:
            resource = SupervisorNamespaceResource.from_settings(client, self.settings)
            try:
                return asyncio.run(run_cancellable(lambda event: operation(resource, event)))
            except InvalidConfigError as e:
                raise ConfigError(str(e)) from e
            except SupervisorNamespaceError as e:
                logger.error("Operation failed", extra={**e.context(), "error": str(e)})
                raise click.ClickException(str(e)) from e
            except asyncio.CancelledError as e:
                # Second signal while cancelling
                raise click.Abort() from e


pass_context = click.make_pass_decorator(Context)


def echo_state(state: SupervisorNamespaceState) -> None:
    click.echo(yaml.safe_dump(state.model_dump(mode="json"), sort_keys=False), nl=False)


def find_managed(
    store: StateStore, config: SupervisorNamespaceConfig
) -> SupervisorNamespaceState | None:
    """Find the recorded namespace a declared configuration refers to.

    Names are server-generated, so a configuration is matched on its project
    and name prefix.
    """
    for resource_id in store.list_ids():
        state = store.get(resource_id)
        if (
            state is not None
            and state.project_name == config.project_name
            and state.name_prefix == config.name_prefix
        ):
            return state
    return None


def _store_call(func: Callable[..., T], *args: Any) -> T:
    try:
        return func(*args)
    except StateStoreError as e:
        raise click.ClickException(str(e)) from e


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=VERSION, prog_name="vsn")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="State file (overrides STATE_FILE).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every poll.")
@click.pass_context
def cli(ctx: click.Context, state_file: Path | None, verbose: bool) -> None:
    """Supervisor Namespace CLI (vsn).

    Declarative lifecycle management of VCF Automation Supervisor Namespaces.

    \b
    Required environment:
        VCFA_URL         Base URL of the VCF Automation endpoint
        VCFA_API_TOKEN   Bearer token for the CCI API
    """
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        raise ConfigError(str(e)) from e

    setup_logging(
        json_output=settings.enable_json_logging,
        level=logging.DEBUG if verbose else logging.INFO,
        secrets=[settings.api_token],
    )

    context = Context(settings)
    if state_file is not None:
        context.store = StateStore(state_file)
    ctx.obj = context


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_context
def apply(context: Context, file: Path) -> None:
    """Create the Supervisor Namespace declared in FILE.

    An already managed namespace is left alone when nothing changed. Any
    change to a managed namespace is rejected; delete and re-create instead.
    """
    try:
        config = load_declared_config(file)
    except InvalidConfigError as e:
        raise ConfigError(str(e)) from e

    existing = _store_call(find_managed, context.store, config)
    if existing is not None:
        if not diff_immutable_fields(existing, config):
            click.echo(f"{existing.id}: up to date")
            return
        context.run(lambda resource, _event: _reject_update(resource, existing, config))
        return

    state = context.run(lambda resource, event: resource.create(config, cancel_event=event))
    _store_call(context.store.put, state)
    click.secho(f"{state.id}: created", fg="green")
    echo_state(state)


async def _reject_update(
    resource: SupervisorNamespaceResource,
    state: SupervisorNamespaceState,
    config: SupervisorNamespaceConfig,
) -> None:
    resource.update(state, config)


@cli.command()
@click.argument("resource_id")
@pass_context
def show(context: Context, resource_id: str) -> None:
    """Refresh and print the state of RESOURCE_ID (<project>:<name>)."""
    prior = _store_call(context.store.get, resource_id)
    name_prefix = prior.name_prefix if prior is not None else None

    state = context.run(lambda resource, _event: resource.read(resource_id, name_prefix=name_prefix))
    if prior is not None:
        _store_call(context.store.put, state)
    echo_state(state)


@cli.command()
@click.argument("resource_id")
@pass_context
def delete(context: Context, resource_id: str) -> None:
    """Delete RESOURCE_ID and wait until it is gone."""

    async def _delete(resource: SupervisorNamespaceResource, event: asyncio.Event) -> bool:
        try:
            await resource.delete(resource_id, cancel_event=event)
        except NotFoundError:
            return False
        return True

    deleted = context.run(_delete)
    _store_call(context.store.remove, resource_id)
    if deleted:
        click.secho(f"{resource_id}: deleted", fg="green")
    else:
        click.secho(f"{resource_id}: already gone, removed from state", fg="yellow")


@cli.command(name="import")
@click.argument("import_id")
@pass_context
def import_command(context: Context, import_id: str) -> None:
    """Start managing an existing namespace given as <project><sep><name>."""
    state = context.run(lambda resource, _event: resource.import_(import_id))
    if _store_call(context.store.get, state.id) is not None:
        raise click.ClickException(f"{state.id} is already managed")
    _store_call(context.store.put, state)
    click.secho(f"{state.id}: imported", fg="green")
    echo_state(state)


@cli.command(name="list")
@pass_context
def list_command(context: Context) -> None:
    """List managed namespaces as recorded in the state file."""
    resource_ids = _store_call(context.store.list_ids)
    if not resource_ids:
        click.echo("No managed Supervisor Namespaces.")
        return
    for resource_id in resource_ids:
        state = _store_call(context.store.get, resource_id)
        if state is None:
            continue
        ready = "ready" if state.ready else "not ready"
        click.echo(f"{resource_id}\t{state.phase or 'UNKNOWN'}\t{ready}")


def main() -> None:
    """Entry point for the vsn CLI."""
    cli()


if __name__ == "__main__":
    main()
