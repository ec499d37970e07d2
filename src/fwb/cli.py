"""Main CLI entry point using Typer.

This module defines the root CLI application, global options and the
backend lifecycle commands.
"""

from pathlib import Path
from typing import Optional, Annotated

import typer
from rich.console import Console

from fwb import __version__
from fwb.backends.factory import (
    ENGINE_DESCRIPTIONS,
    ENGINE_PLATFORMS,
    Engine,
    Supported,
    build_backend,
    require_backend,
)
from fwb.backends.base import Backend
from fwb.core.audit import AuditEventType, AuditLogger, AuditResult
from fwb.core.config import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    BouncerConfig,
    init_config,
)
from fwb.core.context import ExecutionContext, create_context
from fwb.core.exceptions import BouncerError
from fwb.core.metrics import MetricsSink
from fwb.core.output import console as app_console
from fwb.services.decisions import apply_decisions, load_decisions


app = typer.Typer(
    name="fwb",
    help="Firewall bouncer - enforce ban decisions as firewall table state.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)

config_app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


# Type aliases for common options
DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Preview firewall commands without executing them.",
        is_flag=True,
    ),
]

ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Overwrite existing files.",
        is_flag=True,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity. Can be repeated (-v, -vv).",
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Suppress non-essential output. Only show errors.",
        is_flag=True,
    ),
]

NoColorOption = Annotated[
    bool,
    typer.Option(
        "--no-color",
        help="Disable colored output.",
        is_flag=True,
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=f"Path to configuration file. Default: {DEFAULT_CONFIG_PATH}",
        exists=False,
        file_okay=True,
        dir_okay=False,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console = Console()
        console.print(f"fwb version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Firewall bouncer - enforce ban decisions as firewall table state.

    [bold]Examples:[/bold]
        fwb backends
        fwb check
        fwb apply decisions.yaml --dry-run
        fwb flush
    """
    pass


def handle_error(error: BouncerError) -> None:
    """Handle a BouncerError by printing formatted error and exiting."""
    app_console.error(error.message)

    if error.details:
        for detail in error.details:
            app_console.print(f"  [dim]{detail}[/dim]")

    if error.hint:
        app_console.hint(error.hint)

    raise typer.Exit(error.exit_code)


def _get_audit_logger(app_config: AppConfig) -> AuditLogger:
    return AuditLogger(
        log_path=app_config.audit.log_path,
        enabled=app_config.audit.enabled,
    )


def _get_backend(
    ctx: ExecutionContext,
    metrics: Optional[MetricsSink] = None,
) -> Backend:
    """Build the configured backend or raise UnsupportedBackendError."""
    return require_backend(build_backend(ctx, ctx.bouncer, metrics=metrics))


def _init_backend(ctx: ExecutionContext, backend: Backend, audit: AuditLogger) -> None:
    try:
        backend.init()
    except BouncerError as e:
        audit.log_backend(
            AuditEventType.BACKEND_INIT,
            AuditResult.FAILURE,
            backend=backend.name,
            error=e.message,
        )
        raise
    audit.log_backend(
        AuditEventType.BACKEND_INIT,
        AuditResult.DRY_RUN if ctx.dry_run else AuditResult.SUCCESS,
        backend=backend.name,
    )


# ============================================================================
# Backend commands
# ============================================================================

@app.command("backends")
def backends(
    config: ConfigOption = None,
    no_color: NoColorOption = False,
) -> None:
    """List firewall engines and whether they can run on this host."""
    ctx = create_context(no_color=no_color, config=config)

    try:
        selected = ctx.config.mode
        rows = []
        for engine in Engine:
            result = build_backend(ctx, BouncerConfig(mode=engine.value))
            available = "[green]yes[/green]" if isinstance(result, Supported) else f"[red]no[/red] ({result.reason})"
            rows.append([
                engine.value + (" *" if engine.value == selected else ""),
                ENGINE_DESCRIPTIONS[engine],
                ", ".join(ENGINE_PLATFORMS[engine]),
                available,
            ])
        ctx.console.table(
            "Firewall engines (* = configured)",
            ["Engine", "Description", "Platforms", "Available"],
            rows,
        )
    except BouncerError as e:
        handle_error(e)


@app.command("check")
def check(
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Validate firewall pre-conditions and prepare the tables.

    Checks that the kernel device and control tool exist, flushes the
    configured tables and verifies each one is loaded.
    """
    ctx = create_context(dry_run=dry_run, verbose=verbose, no_color=no_color, config=config)

    try:
        audit = _get_audit_logger(ctx.config)
        backend = _get_backend(ctx)
        _init_backend(ctx, backend, audit)
        ctx.console.success(f"{backend.name} backend ready")
    except BouncerError as e:
        handle_error(e)


@app.command("apply")
def apply(
    decisions_file: Annotated[
        Path,
        typer.Argument(help="YAML or JSON file with decisions to apply."),
    ],
    show_metrics: Annotated[
        bool,
        typer.Option("--metrics", help="Print collected metrics (Prometheus format)."),
    ] = False,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Apply a batch of ban/unban decisions.

    Initializes the backend, applies each decision in file order,
    commits and reports a summary. A failing decision does not stop the
    batch; the exit code is 1 if any decision failed.

    [bold]Examples:[/bold]

        fwb apply decisions.yaml
        fwb apply decisions.json --dry-run -vv
    """
    ctx = create_context(
        dry_run=dry_run, verbose=verbose, quiet=quiet, no_color=no_color, config=config,
    )

    try:
        records = load_decisions(decisions_file)
        audit = _get_audit_logger(ctx.config)
        metrics = MetricsSink()
        backend = _get_backend(ctx, metrics=metrics)

        _init_backend(ctx, backend, audit)
        with audit.correlation("apply"):
            report = apply_decisions(
                backend,
                records,
                audit=audit,
                console=ctx.console,
                dry_run=ctx.dry_run,
            )
        backend.commit()
        backend.collect_metrics()
    except BouncerError as e:
        handle_error(e)
        return

    ctx.console.summary("Decisions", {
        "Backend": backend.name,
        "Total": len(records),
        "Applied": report.applied,
        "Tolerated": report.tolerated,
        "Skipped (family disabled)": report.skipped,
        "Failed": report.failed,
    })

    if show_metrics:
        ctx.console.print(metrics.as_prometheus(), end="")

    if not report.ok:
        raise typer.Exit(1)


@app.command("flush")
def flush(
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Empty every enabled firewall table (backend shutdown)."""
    ctx = create_context(dry_run=dry_run, verbose=verbose, no_color=no_color, config=config)

    try:
        audit = _get_audit_logger(ctx.config)
        backend = _get_backend(ctx)
        backend.shutdown()
        audit.log_backend(
            AuditEventType.BACKEND_SHUTDOWN,
            AuditResult.DRY_RUN if ctx.dry_run else AuditResult.SUCCESS,
            backend=backend.name,
        )
        ctx.console.success(f"{backend.name} tables flushed")
    except BouncerError as e:
        handle_error(e)


# ============================================================================
# Config commands
# ============================================================================

@config_app.command("show")
def config_show(
    config: ConfigOption = None,
    no_color: NoColorOption = False,
) -> None:
    """Show the effective configuration (file plus FWB_* overrides)."""
    ctx = create_context(no_color=no_color, config=config)

    try:
        bouncer = ctx.bouncer

        ctx.console.print()
        ctx.console.print(f"[bold]Configuration file:[/bold] {ctx.config_path}")
        ctx.console.print(f"[bold]File exists:[/bold] {ctx.config_path.exists()}")
        ctx.console.print()

        ctx.console.yaml(bouncer.to_yaml(), title="Configuration")
    except BouncerError as e:
        handle_error(e)


@config_app.command("init")
def config_init(
    config: ConfigOption = None,
    force: ForceOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Write an example configuration file."""
    ctx = create_context(no_color=no_color, config=config)

    try:
        init_config(ctx.config_path, force=force)
        ctx.console.success(f"Configuration file created: {ctx.config_path}")
    except BouncerError as e:
        handle_error(e)


# Entry point
if __name__ == "__main__":
    app()
