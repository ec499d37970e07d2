"""pf packet filter backend.

Bans are kept in two pf tables (one per address family) that the pf
ruleset references, e.g.:

    table <crowdsec-blacklists> persist
    table <crowdsec6-blacklists> persist
    block drop in quick from <crowdsec-blacklists> to any
    block drop in quick from <crowdsec6-blacklists> to any

All changes go through pfctl and apply immediately. pf itself is the
source of truth; nothing here caches table membership.
"""

from collections import Counter
from pathlib import Path
from typing import Optional

from fwb.backends.base import Backend, Decision, Family, Outcome, OutcomeStatus
from fwb.core.config import BouncerConfig
from fwb.core.context import ExecutionContext
from fwb.core.exceptions import (
    BackendError,
    BouncerError,
    DecisionError,
    ExecutionError,
    PrerequisiteError,
)
from fwb.core.executor import CommandExecutor
from fwb.core.metrics import MetricsSink
from fwb.core.validation import parse_duration


BACKEND_NAME = "pf"

DEFAULT_PFCTL = "/sbin/pfctl"
DEFAULT_DEVICE = "/dev/pf"
DEFAULT_TABLE_IPV4 = "crowdsec-blacklists"
DEFAULT_TABLE_IPV6 = "crowdsec6-blacklists"

ADD_BAN_FORMAT = "{backend}: add ban on {ip} for {seconds} sec ({scenario})"
DEL_BAN_FORMAT = "{backend}: del ban on {ip} for {seconds} sec ({scenario})"


class PfTableContext:
    """One address family's pf table."""

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        family: Family,
        table: str,
        *,
        pfctl: str = DEFAULT_PFCTL,
    ) -> None:
        self.ctx = ctx
        self.executor = executor
        self.family = family
        self.table = table
        self.pfctl = pfctl

    def __repr__(self) -> str:
        return f"PfTableContext(family={self.family.value!r}, table={self.table!r})"

    def check_table(self) -> None:
        """Verify the table is loaded in pf.

        Raises:
            BackendError: If pfctl fails or the table is not listed
        """
        self.ctx.console.info(f"Checking pf table: {self.table}")

        try:
            result = self.executor.run([self.pfctl, "-s", "Tables"])
        except ExecutionError as e:
            raise BackendError(
                f"pfctl error while listing tables: {e.message}",
                table=self.table,
                details=e.details,
            ) from e

        if self.ctx.dry_run:
            return

        if not result.success:
            raise BackendError(
                f"pfctl error while listing tables (exit {result.return_code})",
                table=self.table,
                details=[result.output.strip()] if result.output.strip() else None,
            )

        if self.table not in result.output:
            raise BackendError(
                f"table {self.table} doesn't exist",
                table=self.table,
                hint=f"Declare it in pf.conf: table <{self.table}> persist",
            )

    def flush(self) -> bool:
        """Empty the table. Failures are logged, never raised.

        Returns:
            True if pfctl reported success
        """
        command = [self.pfctl, "-t", self.table, "-T", "flush"]
        self.ctx.console.info(f"pf table clean-up: {' '.join(command)}")

        try:
            result = self.executor.run(command)
        except ExecutionError as e:
            self.ctx.console.error(f"Error while flushing table {self.table}: {e.message}")
            return False

        if not result.success:
            self.ctx.console.error(
                f"Error while flushing table {self.table} "
                f"(exit {result.return_code}): {result.output.strip()}"
            )
            return False
        return True

    def add(self, decision: Decision) -> Outcome:
        """Insert the decision's address into the table."""
        return self._apply("add", ADD_BAN_FORMAT, decision)

    def delete(self, decision: Decision) -> Outcome:
        """Remove the decision's address from the table."""
        return self._apply("delete", DEL_BAN_FORMAT, decision)

    def _apply(self, operation: str, log_format: str, decision: Decision) -> Outcome:
        # Malformed duration aborts before pfctl is touched
        ban_duration = parse_duration(decision.duration)

        self.ctx.console.debug(log_format.format(
            backend=BACKEND_NAME,
            ip=decision.value,
            seconds=int(ban_duration.total_seconds()),
            scenario=decision.scenario,
        ))

        command = [self.pfctl, "-t", self.table, "-T", operation, decision.value]
        self.ctx.console.debug(f"pfctl {operation}: {' '.join(command)}")

        try:
            result = self.executor.run(command)
        except ExecutionError as e:
            diagnostic = e.message
        else:
            if result.success:
                return Outcome(decision, OutcomeStatus.APPLIED, family=self.family)
            diagnostic = result.output.strip() or f"exit {result.return_code}"

        self.ctx.console.warn(
            f"Error while running pfctl {operation} on table {self.table} "
            f"for {decision.value}: {diagnostic}"
        )
        return Outcome(
            decision,
            OutcomeStatus.TOLERATED,
            family=self.family,
            diagnostic=diagnostic,
        )

    def count(self) -> Optional[int]:
        """Number of addresses in the table, or None if unknown."""
        if self.ctx.dry_run:
            return None
        try:
            result = self.executor.run([self.pfctl, "-t", self.table, "-T", "show"])
        except ExecutionError as e:
            self.ctx.console.debug(f"Cannot list table {self.table}: {e.message}")
            return None
        if not result.success:
            self.ctx.console.debug(f"Cannot list table {self.table}: {result.output.strip()}")
            return None
        return sum(1 for line in result.output.splitlines() if line.strip())


class PfBackend(Backend):
    """pf backend: IPv4 table always, IPv6 table unless disabled."""

    name = BACKEND_NAME

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        *,
        disable_ipv6: bool = False,
        pfctl: str = DEFAULT_PFCTL,
        device: str = DEFAULT_DEVICE,
        table_ipv4: str = DEFAULT_TABLE_IPV4,
        table_ipv6: str = DEFAULT_TABLE_IPV6,
        metrics: Optional[MetricsSink] = None,
    ) -> None:
        self.ctx = ctx
        self.executor = executor
        self.pfctl = pfctl
        self.device = Path(device)
        self.metrics = metrics if metrics is not None else MetricsSink()

        self.inet = PfTableContext(ctx, executor, Family.INET, table_ipv4, pfctl=pfctl)
        self.inet6: Optional[PfTableContext] = None
        if not disable_ipv6:
            self.inet6 = PfTableContext(ctx, executor, Family.INET6, table_ipv6, pfctl=pfctl)

        self._counts: Counter = Counter()

    @classmethod
    def from_config(
        cls,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        config: BouncerConfig,
        metrics: Optional[MetricsSink] = None,
    ) -> "PfBackend":
        """Build a pf backend from configuration."""
        return cls(
            ctx,
            executor,
            disable_ipv6=config.disable_ipv6,
            pfctl=config.pf.pfctl_path,
            device=config.pf.device,
            table_ipv4=config.pf.blacklists_ipv4,
            table_ipv6=config.pf.blacklists_ipv6,
            metrics=metrics,
        )

    @property
    def contexts(self) -> list[PfTableContext]:
        """Enabled family contexts, IPv4 first."""
        return [c for c in (self.inet, self.inet6) if c is not None]

    def init(self) -> None:
        if self.ctx.dry_run:
            self.ctx.console.dry_run_msg(f"Check {self.device} and {self.pfctl}")
        else:
            if not self.executor.path_exists(self.device):
                raise PrerequisiteError(
                    f"{self.device} device not found",
                    hint="Enable pf (pfctl -e) or load the pf kernel module",
                )
            if self.executor.which(self.pfctl) is None:
                raise PrerequisiteError(
                    f"{self.pfctl} command not found",
                    hint="Install pf userland tools or set pf.pfctl_path",
                )

        for table in self.contexts:
            table.flush()
            table.check_table()
            label = "ipv4" if table.family == Family.INET else "ipv6"
            self.ctx.console.info(f"pf for {label} initiated")

    def add(self, decision: Decision) -> Outcome:
        return self._route("add", decision)

    def delete(self, decision: Decision) -> Outcome:
        return self._route("delete", decision)

    def _route(self, action: str, decision: Decision) -> Outcome:
        family = decision.family
        table = self.inet6 if family == Family.INET6 else self.inet

        if table is None:
            verb = "adding" if action == "add" else "removing"
            self.ctx.console.debug(f"not {verb} '{decision.value}' because ipv6 is disabled")
            outcome = Outcome(decision, OutcomeStatus.SKIPPED)
        else:
            try:
                outcome = table.add(decision) if action == "add" else table.delete(decision)
            except BouncerError as e:
                direction = "to" if action == "add" else "from"
                raise DecisionError(
                    f"failed to {action} ban ip '{decision.value}' {direction} {family.value} table",
                    value=decision.value,
                    hint=e.hint,
                    details=[e.message, *e.details],
                ) from e

        self._counts[(action, family.value, outcome.status.value)] += 1
        return outcome

    def commit(self) -> None:
        # pfctl applies every change immediately
        self.ctx.console.debug("pf: nothing to commit")

    def shutdown(self) -> None:
        self.ctx.console.info("flushing pf table(s)")
        for table in self.contexts:
            table.flush()

    def collect_metrics(self) -> None:
        try:
            for table in self.contexts:
                size = table.count()
                if size is not None:
                    self.metrics.set_gauge(
                        "fwb_table_entries",
                        size,
                        {"family": table.family.value, "table": table.table},
                    )
            for (action, family, status), total in self._counts.items():
                self.metrics.set_counter(
                    "fwb_decisions_total",
                    total,
                    {"action": action, "family": family, "status": status},
                )
        except Exception as e:
            self.ctx.console.warn(f"pf: metrics collection failed: {e}")
