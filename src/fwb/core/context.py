"""Per-invocation state shared by the CLI, the executor and the backends."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fwb.core.config import AppConfig, BouncerConfig, DEFAULT_CONFIG_PATH
from fwb.core.output import Console, console, Verbosity


@dataclass
class ExecutionContext:
    """Flags for one fwb invocation.

    With ``dry_run`` set, the executor prints pfctl command lines instead
    of running them and backends skip their host checks. The
    configuration file is read on first access.
    """

    dry_run: bool = False
    verbosity: int = Verbosity.NORMAL
    no_color: bool = False
    config_path: Path = DEFAULT_CONFIG_PATH

    _config: Optional[AppConfig] = field(default=None, repr=False)
    _console: Console = field(default_factory=lambda: console, repr=False)

    def __post_init__(self) -> None:
        self._console.configure(self.verbosity, dry_run=self.dry_run, no_color=self.no_color)

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            self._config = AppConfig(config_path=self.config_path)
        return self._config

    @property
    def bouncer(self) -> BouncerConfig:
        """Effective bouncer settings (file plus FWB_* overrides)."""
        return self.config.config

    @property
    def console(self) -> Console:
        return self._console


def verbosity_from_flags(verbose: int, quiet: bool) -> Verbosity:
    """Map -v/-q counts to a verbosity level; quiet wins."""
    if quiet:
        return Verbosity.QUIET
    return Verbosity(min(Verbosity.NORMAL + verbose, Verbosity.DEBUG))


def create_context(
    dry_run: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    config: Optional[Path] = None,
) -> ExecutionContext:
    """Build the context for a CLI command from its options."""
    return ExecutionContext(
        dry_run=dry_run,
        verbosity=verbosity_from_flags(verbose, quiet),
        no_color=no_color,
        config_path=config or DEFAULT_CONFIG_PATH,
    )
