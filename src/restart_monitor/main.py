"""Main CLI entry point for the game server restart monitor.

This module provides the command-line interface for running the monitor,
inspecting its persisted state and managing its configuration.
"""

import asyncio
import json
import sys
import traceback
from typing import Any, Dict, Optional

import click
import structlog
import yaml

from . import __version__
from .config import ConfigurationError, ConfigurationManager, MonitorSettings
from .config.logging import configure_logging
from .gameserver.channel import ScreenChannel
from .gameserver.exceptions import MonitorError
from .gameserver.process_inspector import GameProcessInspector
from .monitoring.clock import Clock
from .monitoring.cooldown import CooldownCoordinator, CooldownScope
from .monitoring.monitor_loop import MonitorLoop
from .storage.state_store import RECORD_GROUPS, StateStore

logger = structlog.get_logger()


class CLIError(Exception):
    """Base CLI error with user-friendly messages."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)


class CLIContext:
    """Global CLI context management."""

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        config_file: Optional[str] = None,
    ):
        self.verbose = verbose
        self.quiet = quiet
        self.config_file = config_file
        self.config_manager = ConfigurationManager()
        self._settings: Optional[MonitorSettings] = None

    @property
    def settings(self) -> MonitorSettings:
        """Settings loaded once from defaults, config file and environment."""
        if self._settings is None:
            self._settings = asyncio.run(
                self.config_manager.load_settings(self.config_file)
            )
        return self._settings

    def log_level(self, configured: str) -> str:
        if self.verbose:
            return "DEBUG"
        if self.quiet:
            return "ERROR"
        return configured


def handle_cli_error(error: Exception, ctx: Optional[click.Context] = None):
    """Global CLI error handler."""
    try:
        if isinstance(error, (CLIError, MonitorError)):
            click.echo(f"❌ {error.message}", err=True)
            if error.suggestion:
                click.echo(f"💡 {error.suggestion}", err=True)
        elif isinstance(error, ConfigurationError):
            click.echo(f"❌ Configuration error: {error.message}", err=True)
            for err in error.validation_errors:
                click.echo(f"   • {err}", err=True)
            suggestion = error.details.get("suggestion")
            if suggestion:
                click.echo(f"💡 {suggestion}", err=True)
        elif isinstance(error, click.ClickException):
            error.show()
        else:
            verbose = False
            if ctx and ctx.obj:
                verbose = ctx.obj.get("verbose", False)

            click.echo(f"Unexpected error: {str(error)}", err=True)
            if verbose:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo(
                    "Run with --verbose for detailed error information", err=True
                )

        sys.exit(1)
    except SystemExit:
        raise
    except Exception as handler_error:
        click.echo(f"Critical error in error handler: {handler_error}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="restart-monitor")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output with debug logging",
)
@click.option(
    "--quiet", "-q", is_flag=True, help="Only report errors"
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path (YAML format)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config: Optional[str]):
    """Game server restart monitor

    Watches a modded Minecraft server running in a screen session and
    restarts its systemd unit when players vote for it with !restart or
    when TPS stays low for a whole check cycle.

    \b
    Examples:
      restart-monitor run
      restart-monitor status --format json
      restart-monitor reset votes
      restart-monitor config show vote.percentage

    For detailed help on any command, use:
      restart-monitor COMMAND --help
    """
    if verbose and quiet:
        raise click.BadParameter("Cannot use both --verbose and --quiet options")

    ctx.ensure_object(dict)
    cli_context = CLIContext(verbose=verbose, quiet=quiet, config_file=config)

    ctx.obj["cli_context"] = cli_context
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose or quiet:
        configure_logging(cli_context.log_level("INFO"))


@cli.command()
@click.option(
    "--no-wait",
    is_flag=True,
    help="Start monitoring without waiting for the server to finish starting",
)
@click.pass_context
def run(ctx: click.Context, no_wait: bool):
    """Run the restart monitor until interrupted.

    Scans the server log for restart votes and samples TPS on the
    configured intervals. Stops cleanly on SIGINT or SIGTERM.
    """
    try:
        cli_context = ctx.obj["cli_context"]
        settings = cli_context.settings

        log_file = settings.get_log_file_path()
        configure_logging(
            level=cli_context.log_level(settings.logging.level),
            log_file=str(log_file) if log_file else None,
            json_logs=settings.logging.json_format,
            max_size_mb=settings.logging.rotation.max_size_mb,
            backup_count=settings.logging.rotation.backup_count,
        )

        monitor = MonitorLoop.from_settings(settings)
        asyncio.run(_run_monitor(monitor, wait_for_server=not no_wait))

    except KeyboardInterrupt:
        click.echo("\n🛑 Restart monitor stopped")
    except Exception as error:
        handle_cli_error(error, ctx)


async def _run_monitor(monitor: MonitorLoop, wait_for_server: bool) -> None:
    monitor.install_signal_handlers()
    await monitor.run(wait_for_server=wait_for_server)


@cli.command()
@click.option(
    "--format",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format for status information",
)
@click.pass_context
def status(ctx: click.Context, format: str):
    """Show server, cooldown and vote status.

    \b
    Status information includes:
    - Whether the screen session exists
    - Game process information (PID, uptime, CPU and memory usage)
    - Remaining cooldown per restart trigger
    - The open vote ballot and the log scan position
    """
    try:
        settings = ctx.obj["cli_context"].settings
        report = asyncio.run(_collect_status(settings))

        if format == "json":
            click.echo(json.dumps(report, indent=2))
        elif format == "yaml":
            click.echo(yaml.dump(report, default_flow_style=False, sort_keys=False))
        else:
            _display_status_table(report)

    except Exception as error:
        handle_cli_error(error, ctx)


async def _collect_status(
    settings: MonitorSettings, clock: Optional[Clock] = None
) -> Dict[str, Any]:
    """Gather a status report without touching the running monitor."""
    clock = clock or Clock()
    channel = ScreenChannel(settings.server.screen_session, settings.get_server_log_path())
    store = StateStore(settings.get_state_dir())
    cooldowns = CooldownCoordinator(store, settings.cooldown.global_cooldown, clock)
    inspector = GameProcessInspector(settings.server.screen_session)

    attached = await channel.is_attached()
    metrics = inspector.get_metrics() if attached else None
    now = int(clock.now())

    ballot = store.load_ballot()
    last_cycle = store.get_last_cycle()
    next_cycle = None
    if last_cycle is not None:
        next_cycle = max(0, settings.performance.cycle_interval - (now - last_cycle))

    return {
        "session": {
            "name": settings.server.screen_session,
            "attached": attached,
        },
        "process": metrics.to_dict() if metrics else None,
        "cooldowns": {
            "global": cooldowns.remaining(CooldownScope.GLOBAL),
            "vote": cooldowns.remaining(CooldownScope.VOTE, settings.vote.cooldown),
            "performance": cooldowns.blocking_remaining(
                CooldownScope.PERFORMANCE, settings.performance.cooldown
            ),
        },
        "ballot": (
            {
                "voters": sorted(ballot.voters),
                "age": ballot.age(now),
                "expired": ballot.is_expired(now, settings.vote.expiry),
            }
            if ballot
            else None
        ),
        "vote_cursor": store.get_vote_cursor(),
        "next_tps_cycle_in": next_cycle,
        "records": store.snapshot(),
    }


def _display_status_table(report: Dict[str, Any]):
    """Display status in table format."""
    session = report["session"]
    status_emoji = "🟢" if session["attached"] else "🔴"
    click.echo(f"📊 Restart Monitor Status - session '{session['name']}'")
    click.echo("=" * 60)
    click.echo(
        f"   Session: {status_emoji} {'attached' if session['attached'] else 'not found'}"
    )

    process = report.get("process")
    if process:
        click.echo(
            f"   PID: {process['pid']} ({process['name']}) | "
            f"Uptime: {_format_uptime(process['uptime_seconds'])}"
        )
        click.echo(
            f"   Resources: CPU {process['cpu_percent']:.1f}% | "
            f"Memory {process['memory_mb']:.1f}MB | Threads {process['threads']}"
        )

    click.echo("-" * 40)
    click.echo("   Cooldowns:")
    for scope, remaining in report["cooldowns"].items():
        state = f"{_format_uptime(remaining)} remaining" if remaining else "ready"
        click.echo(f"      {scope}: {state}")

    ballot = report.get("ballot")
    if ballot:
        expired = " (expired)" if ballot["expired"] else ""
        click.echo(
            f"   Ballot: {len(ballot['voters'])} vote(s), "
            f"opened {_format_uptime(ballot['age'])} ago{expired}"
        )
        click.echo(f"      Voters: {', '.join(ballot['voters'])}")
    else:
        click.echo("   Ballot: no open vote")

    cursor = report.get("vote_cursor")
    click.echo(f"   Vote scan position: line {cursor if cursor is not None else '-'}")
    next_cycle = report.get("next_tps_cycle_in")
    if next_cycle is not None:
        click.echo(f"   Next TPS cycle in: {_format_uptime(next_cycle)}")


def _format_uptime(uptime_seconds: float) -> str:
    """Format a duration in human-readable format."""
    if uptime_seconds < 60:
        return f"{uptime_seconds:.0f}s"
    elif uptime_seconds < 3600:
        minutes = int(uptime_seconds // 60)
        seconds = int(uptime_seconds % 60)
        return f"{minutes}m {seconds}s"
    elif uptime_seconds < 86400:
        hours = int(uptime_seconds // 3600)
        minutes = int((uptime_seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
    else:
        days = int(uptime_seconds // 86400)
        hours = int((uptime_seconds % 86400) // 3600)
        return f"{days}d {hours}h"


@cli.command()
@click.argument("target", type=click.Choice(sorted(RECORD_GROUPS)))
@click.pass_context
def reset(ctx: click.Context, target: str):
    """Delete persisted monitor state.

    \b
    Targets:
      cooldowns  - last restart timestamps (allows an immediate restart)
      votes      - the open ballot and its announced voters
      cursor     - the vote scan position (next run starts at the log end)
      cycle      - the last TPS cycle timestamp
      all        - everything above
    """
    try:
        settings = ctx.obj["cli_context"].settings
        store = StateStore(settings.get_state_dir())
        removed = store.clear(RECORD_GROUPS[target])

        if removed:
            click.echo(f"✅ Removed: {', '.join(removed)}")
        else:
            click.echo(f"ℹ️  Nothing to reset for '{target}'")
        logger.info("State reset", target=target, removed=removed)

    except Exception as error:
        handle_cli_error(error, ctx)


@cli.command()
@click.argument("action", type=click.Choice(["show", "validate", "init", "env-help"]))
@click.argument("key", required=False)
@click.option(
    "--file", "-f",
    type=click.Path(),
    help="Configuration file to use (default: --config or ~/.restart-monitor/config.yaml)",
)
@click.option(
    "--force", is_flag=True,
    help="Force overwrite existing configuration file"
)
@click.option(
    "--format",
    type=click.Choice(["yaml", "json", "table"]),
    default="table",
    help="Output format for show command"
)
@click.pass_context
def config(
    ctx: click.Context,
    action: str,
    key: Optional[str],
    file: Optional[str],
    force: bool,
    format: str,
):
    """Manage configuration settings.

    Configuration hierarchy (highest to lowest priority):
    1. Environment variables (RESTART_MONITOR_*)
    2. Configuration file
    3. Built-in defaults

    \b
    Available configuration sections:
      server.*            - Server directory, log file, screen session, systemd unit
      vote.*              - Vote percentage, minimum, expiry, scan interval, cooldown
      performance.*       - TPS threshold, cycle interval, samples, cooldown
      cooldown.*          - Global cooldown shared by all restart triggers
      monitor.*           - State directory and loop timings
      logging.*           - Log level, file and rotation

    \b
    Examples:
      restart-monitor config init
      restart-monitor config show
      restart-monitor config show vote.percentage
      restart-monitor config validate
      restart-monitor config env-help
    """
    try:
        cli_context = ctx.obj["cli_context"]
        config_manager = cli_context.config_manager
        config_file = file or cli_context.config_file

        if action == "show":
            _config_show(config_manager, key, format, config_file)
        elif action == "validate":
            _config_validate(config_manager, config_file)
        elif action == "init":
            _config_init(config_manager, config_file, force)
        elif action == "env-help":
            _config_env_help(config_manager)

    except Exception as error:
        handle_cli_error(error, ctx)


# Configuration command helper functions

def _config_show(
    config_manager: ConfigurationManager,
    key: Optional[str],
    format: str,
    file: Optional[str],
):
    """Show configuration values."""
    config = asyncio.run(config_manager.load_configuration(file))

    if key:
        if config_manager.schema.get_definition(key) is None:
            raise CLIError(
                f"Configuration key '{key}' not found",
                "Run 'restart-monitor config show' to list all keys",
            )
        config = {key: config_manager.env_extractor.get_nested_config_value(config, key)}

    if format == "json":
        click.echo(json.dumps(config, indent=2))
    elif format == "yaml":
        click.echo(yaml.dump(config, default_flow_style=False, sort_keys=False))
    elif key:
        click.echo(f"{key}: {config[key]}")
        help_text = config_manager.get_configuration_help(key)
        click.echo(f"\n{help_text}")
    else:
        _config_show_table(config)


def _config_show_table(config: Dict[str, Any], prefix: str = ""):
    """Display configuration in table format."""
    for key, value in config.items():
        full_key = f"{prefix}.{key}" if prefix else key

        if isinstance(value, dict):
            click.echo(f"\n[{full_key}]")
            _config_show_table(value, full_key)
        else:
            click.echo(f"{full_key}: {value}")


def _config_validate(config_manager: ConfigurationManager, file: Optional[str]):
    """Validate configuration."""
    is_valid, errors, warnings = asyncio.run(config_manager.validate_configuration(file))

    if is_valid:
        click.echo("✅ Configuration is valid")
    else:
        click.echo("❌ Configuration validation failed")
        click.echo("\nErrors:")
        for error in errors:
            click.echo(f"   • {error}")

    if warnings:
        click.echo("\n⚠️  Warnings:")
        for warning in warnings:
            click.echo(f"   • {warning}")

    if not is_valid:
        sys.exit(1)


def _config_init(config_manager: ConfigurationManager, file: Optional[str], force: bool):
    """Write a configuration file with the default settings."""
    path = asyncio.run(config_manager.initialize_configuration(file, overwrite=force))
    click.echo(f"✅ Configuration initialized at {path}")

    click.echo("\n📋 Next steps:")
    click.echo(f"   1. Set server.directory and server.screen_session in {path}")
    click.echo("   2. Validate configuration: restart-monitor config validate")
    click.echo("   3. Start monitoring: restart-monitor --config PATH run")


def _config_env_help(config_manager: ConfigurationManager):
    """Show environment variable help."""
    click.echo(config_manager.get_environment_help())


# Setup global error handling
def setup_error_handling():
    """Setup global CLI error handling."""

    def exception_handler(exc_type, exc_value, exc_traceback):
        current_ctx = click.get_current_context(silent=True)
        handle_cli_error(exc_value, current_ctx)

    sys.excepthook = exception_handler


# Initialize error handling when module is imported
setup_error_handling()


if __name__ == "__main__":
    cli()
