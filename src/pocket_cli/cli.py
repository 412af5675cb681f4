"""
Pocket Command Line Interface

Main entry point for the pocket CLI. Every command writes exactly one JSON
envelope to stdout; see pocket_cli.registry.output.
"""

import sys
from typing import List, Optional

import click

from pocket_cli.registry.catalog import SetupCatalog, get_catalog
from pocket_cli.registry.credentials import CredentialStore, normalize_key
from pocket_cli.registry.exceptions import PocketError, UsageError, get_error_code
from pocket_cli.registry.flow import SetupFlow
from pocket_cli.registry.integrations import IntegrationRegistry, get_registry
from pocket_cli.registry.logging_config import get_logger, setup_logging
from pocket_cli.registry.output import OutputWriter

logger = get_logger("cli")


class AliasedGroup(click.Group):
    """Group whose subcommands may be reached by alternative names."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.aliases = {}

    def add_alias(self, name: str, *aliases: str):
        for alias in aliases:
            self.aliases[alias] = name

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        # Report the canonical name, not the alias typed
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name if cmd else None, cmd, args


class AppContext:
    """Per-invocation state shared by every command.

    The registry, catalog and store are built on first use so that
    ``pocket --help`` never touches package data or the config file.
    """

    def __init__(self, output: Optional[OutputWriter] = None):
        self.output = output or OutputWriter()
        self._store = None

    @property
    def catalog(self) -> SetupCatalog:
        return get_catalog()

    @property
    def registry(self) -> IntegrationRegistry:
        return get_registry()

    @property
    def store(self) -> CredentialStore:
        if self._store is None:
            self._store = CredentialStore(owners=self.catalog.services_for_key)
        return self._store

    @property
    def flow(self) -> SetupFlow:
        return SetupFlow(self.catalog, self.store)


pass_app = click.make_pass_decorator(AppContext)


@click.group(cls=AliasedGroup)
@click.version_option(package_name="pocket-cli", prog_name="pocket")
@click.option("--verbose", "-v", is_flag=True, help="Pretty-print JSON output")
@click.option("--debug", is_flag=True, help="Debug logging on stderr (same as POCKET_DEBUG=1)")
@click.pass_context
def cli(ctx, verbose: bool, debug: bool):
    """Pocket: one command surface and one JSON envelope for many services.

    Examples:
        pocket integrations ready          # What can I use right now?
        pocket setup list                  # What still needs credentials?
        pocket setup show github           # How do I set it up?
        pocket setup set github ghp_xxx    # Save the token
    """
    setup_logging(debug=debug)
    app = ctx.ensure_object(AppContext)
    app.output.verbose = app.output.verbose or verbose


@cli.group()
def integrations():
    """List integrations and their readiness."""
    pass


@integrations.command("list")
@click.option("--group", "-g", help="Filter by group id (see: pocket integrations groups)")
@click.option("--no-auth", "no_auth", is_flag=True, help="Only integrations that need no credentials")
@pass_app
def integrations_list(app: AppContext, group: Optional[str], no_auth: bool):
    """List integrations with their current status."""
    registry = app.registry
    selected = registry.filter(group=group, no_auth_only=no_auth)
    values = app.store.load()
    app.output.success([i.to_dict(registry.status(i, values)) for i in selected])


@integrations.command("ready")
@pass_app
def integrations_ready(app: AppContext):
    """List integrations usable now (configured or no auth needed)."""
    registry = app.registry
    values = app.store.load()
    app.output.success([i.to_dict(registry.status(i, values)) for i in registry.ready_only(values)])


@integrations.command("groups")
@pass_app
def integrations_groups(app: AppContext):
    """List integration groups with their sizes."""
    app.output.success(app.registry.groups())


cli.add_alias("integrations", "int", "services")


@cli.group()
def setup():
    """Service setup and onboarding."""
    pass


@setup.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Include services that are already configured")
@pass_app
def setup_list(app: AppContext, show_all: bool):
    """List services and their setup status, most incomplete first."""
    app.output.success(app.flow.list(show_all=show_all))


@setup.command("show")
@click.argument("service")
@pass_app
def setup_show(app: AppContext, service: str):
    """Show setup instructions and key status for SERVICE."""
    app.output.success(app.flow.show(service))


@setup.command("set")
@click.argument("service")
@click.argument("key_or_value", metavar="[KEY] VALUE")
@click.argument("value", required=False, metavar="")
@pass_app
def setup_set(app: AppContext, service: str, key_or_value: str, value: Optional[str]):
    """Save a credential for SERVICE.

    The key may be left out for services that have exactly one key.

    Examples:
        pocket setup set github ghp_xxx
        pocket setup set jira jira_url https://mycompany.atlassian.net
    """
    app.output.success(app.flow.set(service, key_or_value, value))


cli.add_alias("setup", "onboard")


@cli.group()
def config():
    """Direct access to the credential store."""
    pass


@config.command("path")
@pass_app
def config_path(app: AppContext):
    """Show the credential store path."""
    app.output.success({"path": str(app.store.path)})


@config.command("list")
@pass_app
def config_list(app: AppContext):
    """List every stored key with its value redacted."""
    app.output.success(app.store.redacted())


@config.command("get")
@click.argument("key")
@pass_app
def config_get(app: AppContext, key: str):
    """Print the value of KEY ("" when unset)."""
    app.output.success({"key": normalize_key(key), "value": app.store.get(key)})


@config.command("set")
@click.argument("key")
@click.argument("value")
@pass_app
def config_set(app: AppContext, key: str, value: str):
    """Store VALUE under KEY."""
    app.store.set(key, value)
    app.output.success({"status": "ok", "key": normalize_key(key)})


@cli.command("commands")
@click.option("--group", "-g", help="Only commands of this group")
@pass_app
def commands(app: AppContext, group: Optional[str]):
    """List example invocations of every integration, by group."""
    app.output.success(app.registry.commands_by_group(group))


cli.add_alias("commands", "cmds", "ls")


def _verbose_requested(args: List[str]) -> bool:
    """Look for -v/--verbose among the leading global options."""
    for arg in args:
        if not arg.startswith("-"):
            return False
        if arg in ("-v", "--verbose"):
            return True
    return False


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit code.

    Errors never escape as tracebacks: each is rendered once as an error
    envelope on stdout.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    app = AppContext(OutputWriter(verbose=_verbose_requested(args)))

    try:
        result = cli.main(args=args, prog_name="pocket", obj=app, standalone_mode=False)
    except PocketError as e:
        logger.debug("Command failed: %s", e, exc_info=True)
        app.output.error(e.to_dict())
        return get_error_code(e)
    except click.ClickException as e:
        logger.debug("Usage error: %s", e.format_message())
        error = UsageError(e.format_message())
        app.output.error(error.to_dict())
        return get_error_code(error)
    except click.Abort:
        return 130
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        error = PocketError(str(e) or e.__class__.__name__)
        app.output.error(error.to_dict())
        return get_error_code(error)

    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    sys.exit(main())
