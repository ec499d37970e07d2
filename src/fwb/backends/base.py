"""Backend contract shared by every firewall engine.

A backend materializes ban decisions as firewall state. Each engine
implements the same six operations; callers never inspect the concrete
type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Family(str, Enum):
    """Address family."""
    INET = "inet"
    INET6 = "inet6"


class OutcomeStatus(str, Enum):
    """What happened to a decision."""
    APPLIED = "applied"
    TOLERATED = "tolerated"  # engine refused; logged, not raised
    SKIPPED = "skipped"      # family disabled


@dataclass(frozen=True)
class Decision:
    """A ban/unban directive for one address or range."""
    value: str
    duration: str
    scenario: str = "manual"
    origin: Optional[str] = None
    kind: str = "ban"

    @property
    def family(self) -> Family:
        """Family by syntax: any ':' means IPv6."""
        return Family.INET6 if ":" in self.value else Family.INET


@dataclass(frozen=True)
class Outcome:
    """Result of an add/delete.

    A tolerated outcome is still a success for the caller; ``diagnostic``
    carries the engine output that was also logged as a warning.
    """
    decision: Decision
    status: OutcomeStatus
    family: Optional[Family] = None
    diagnostic: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.status == OutcomeStatus.APPLIED


class Backend(ABC):
    """Lifecycle contract: init, then add/delete in any order, optional
    commit, then shutdown exactly once.

    Calls must be serialized by the caller.
    """

    name: str = "backend"

    @abstractmethod
    def init(self) -> None:  # pragma: no cover
        """Validate pre-conditions and prepare tables.

        Raises:
            PrerequisiteError: Tool or kernel device missing
            BackendError: A required table does not exist
        """

    @abstractmethod
    def add(self, decision: Decision) -> Outcome:  # pragma: no cover
        """Apply a ban decision."""

    @abstractmethod
    def delete(self, decision: Decision) -> Outcome:  # pragma: no cover
        """Remove a ban decision."""

    @abstractmethod
    def commit(self) -> None:  # pragma: no cover
        """Flush buffered mutations, for engines that buffer."""

    @abstractmethod
    def shutdown(self) -> None:  # pragma: no cover
        """Empty every enabled table. Never raises."""

    @abstractmethod
    def collect_metrics(self) -> None:  # pragma: no cover
        """Report counters to the metrics sink. Never raises."""
