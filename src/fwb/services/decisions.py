"""Decision batches.

Loads ban/unban decisions from a YAML or JSON file and applies them to a
backend in file order. A decision that fails is reported and the batch
moves on to the next one.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from fwb.backends.base import Backend, Decision, Outcome, OutcomeStatus
from fwb.core.audit import AuditLogger, AuditResult
from fwb.core.exceptions import DecisionError, ValidationError
from fwb.core.output import Console, console as default_console


class DecisionRecord(BaseModel):
    """One entry of a decision batch file.

    The file key ``type`` is read into ``kind``.
    """

    model_config = ConfigDict(populate_by_name=True)

    value: str
    duration: str
    scenario: str = "manual"
    origin: Optional[str] = None
    kind: str = Field("ban", alias="type")
    action: Literal["add", "delete"] = "add"

    @field_validator("value", "duration")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    def to_decision(self) -> Decision:
        return Decision(
            value=self.value,
            duration=self.duration,
            scenario=self.scenario,
            origin=self.origin,
            kind=self.kind,
        )


def parse_decisions(data: object, source: str = "<data>") -> list[DecisionRecord]:
    """Validate raw batch data.

    Args:
        data: A list of records, or a mapping with a ``decisions`` list
        source: Name used in error messages

    Returns:
        Validated records in input order

    Raises:
        ValidationError: If the structure or any record is invalid
    """
    if data is None:
        return []

    if isinstance(data, dict):
        data = data.get("decisions") or []

    if not isinstance(data, list):
        raise ValidationError(
            f"Decision batch must be a list: {source}",
            hint="Use a top-level list or a 'decisions:' key",
        )

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValidationError(f"Decision #{index} in {source} is not a mapping")
        try:
            records.append(DecisionRecord(**item))
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid decision #{index} in {source}",
                details=[err["msg"] + f" ({'.'.join(str(p) for p in err['loc'])})"
                         for err in e.errors()],
            ) from e
    return records


def load_decisions(path: Path) -> list[DecisionRecord]:
    """Load a decision batch from a YAML or JSON file.

    Raises:
        ValidationError: If the file is missing or malformed
    """
    if not path.exists():
        raise ValidationError(f"Decision file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValidationError(
            f"Invalid YAML/JSON in decision file: {path}",
            details=[str(e)],
        ) from e

    return parse_decisions(data, source=str(path))


@dataclass
class ApplyReport:
    """What happened to each decision of a batch."""
    outcomes: list[Outcome] = field(default_factory=list)
    failures: list[tuple[DecisionRecord, DecisionError]] = field(default_factory=list)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def applied(self) -> int:
        return self._count(OutcomeStatus.APPLIED)

    @property
    def tolerated(self) -> int:
        return self._count(OutcomeStatus.TOLERATED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


AUDIT_RESULTS = {
    OutcomeStatus.APPLIED: AuditResult.SUCCESS,
    OutcomeStatus.TOLERATED: AuditResult.TOLERATED,
    OutcomeStatus.SKIPPED: AuditResult.SKIPPED,
}


def apply_decisions(
    backend: Backend,
    records: list[DecisionRecord],
    *,
    audit: Optional[AuditLogger] = None,
    console: Optional[Console] = None,
    dry_run: bool = False,
) -> ApplyReport:
    """Apply records to an initialized backend, in order.

    Args:
        backend: Backend on which init() already succeeded
        records: Decisions to apply
        audit: Optional audit logger
        console: Output console
        dry_run: Record audit events as dry-run

    Returns:
        ApplyReport with one entry per record
    """
    out = console or default_console
    report = ApplyReport()

    for record in records:
        decision = record.to_decision()

        try:
            if record.action == "add":
                outcome = backend.add(decision)
            else:
                outcome = backend.delete(decision)
        except DecisionError as e:
            out.error(f"{e.message}: {'; '.join(e.details)}" if e.details else e.message)
            report.failures.append((record, e))
            if audit:
                audit.log_decision(
                    record.action,
                    decision,
                    AuditResult.FAILURE,
                    backend=backend.name,
                    error=str(e.__cause__ or e),
                )
            continue

        report.outcomes.append(outcome)
        out.outcome(record.action, decision.value, outcome.status.value)
        if audit:
            result = AUDIT_RESULTS[outcome.status]
            if dry_run and result == AuditResult.SUCCESS:
                result = AuditResult.DRY_RUN
            audit.log_decision(
                record.action,
                decision,
                result,
                backend=backend.name,
                family=outcome.family.value if outcome.family else None,
                message=outcome.diagnostic,
            )

    return report
