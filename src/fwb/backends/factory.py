"""Backend selection.

Engine selection happens once at startup from ``config.mode`` and the
platform. An engine that cannot run here yields an explicit
``Unsupported`` result that the caller must handle; there is no null
backend.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from fwb.backends.base import Backend
from fwb.backends.pf import PfBackend
from fwb.core.config import BouncerConfig
from fwb.core.context import ExecutionContext
from fwb.core.exceptions import UnsupportedBackendError
from fwb.core.executor import CommandExecutor
from fwb.core.metrics import MetricsSink


class Engine(str, Enum):
    """Firewall engines known to the bouncer."""
    PF = "pf"
    IPTABLES = "iptables"
    NFTABLES = "nftables"


# sys.platform prefixes each engine runs on
ENGINE_PLATFORMS: dict[Engine, tuple[str, ...]] = {
    Engine.PF: ("openbsd", "freebsd"),
    Engine.IPTABLES: ("linux",),
    Engine.NFTABLES: ("linux",),
}

ENGINE_DESCRIPTIONS: dict[Engine, str] = {
    Engine.PF: "pf tables via pfctl",
    Engine.IPTABLES: "netfilter tables via iptables/ipset",
    Engine.NFTABLES: "netlink rules via nftables",
}


@dataclass(frozen=True)
class Supported:
    """A ready-to-init backend."""
    backend: Backend


@dataclass(frozen=True)
class Unsupported:
    """Why no backend could be built."""
    engine: str
    reason: str


BackendResult = Union[Supported, Unsupported]


def platform_matches(engine: Engine, platform: str) -> bool:
    """Check whether an engine's kernel facility exists on a platform."""
    return platform.startswith(ENGINE_PLATFORMS[engine])


def build_backend(
    ctx: ExecutionContext,
    config: BouncerConfig,
    *,
    executor: Optional[CommandExecutor] = None,
    metrics: Optional[MetricsSink] = None,
    platform: Optional[str] = None,
) -> BackendResult:
    """Construct the backend selected by ``config.mode``.

    Dry-run skips the platform check so commands can be previewed
    anywhere.

    Args:
        ctx: Execution context
        config: Bouncer configuration
        executor: Command executor (created from ctx if None)
        metrics: Metrics sink handed to the backend
        platform: Platform string (defaults to sys.platform)

    Returns:
        Supported(backend) or Unsupported(engine, reason)
    """
    platform = platform or sys.platform

    try:
        engine = Engine(config.mode)
    except ValueError:
        return Unsupported(config.mode, f"unknown firewall engine '{config.mode}'")

    if not ctx.dry_run and not platform_matches(engine, platform):
        expected = "/".join(ENGINE_PLATFORMS[engine])
        return Unsupported(
            engine.value,
            f"{engine.value} requires {expected}, running on {platform}",
        )

    executor = executor or CommandExecutor(ctx)

    if engine == Engine.PF:
        return Supported(PfBackend.from_config(ctx, executor, config, metrics=metrics))

    # TODO: port the ipset-based iptables driver and the nftables driver
    return Unsupported(engine.value, f"no {engine.value} driver in this build")


def require_backend(result: BackendResult) -> Backend:
    """Unwrap a factory result.

    Raises:
        UnsupportedBackendError: If the result is Unsupported
    """
    if isinstance(result, Unsupported):
        raise UnsupportedBackendError(
            f"Firewall engine '{result.engine}' is not available: {result.reason}",
            hint="Set 'mode' in the config file or FWB_MODE to a supported engine",
        )
    return result.backend
