"""Core framework components for the firewall bouncer."""

from fwb.core.exceptions import (
    BouncerError,
    ConfigurationError,
    ValidationError,
    ExecutionError,
    PrerequisiteError,
    BackendError,
    DecisionError,
    UnsupportedBackendError,
)

from fwb.core.context import ExecutionContext, create_context
from fwb.core.output import console, Console, Verbosity
from fwb.core.config import AppConfig, BouncerConfig
from fwb.core.audit import AuditLogger, AuditEvent, AuditEventType, AuditResult
from fwb.core.executor import CommandExecutor, CommandResult
from fwb.core.metrics import MetricsSink

__all__ = [
    # Exceptions
    "BouncerError",
    "ConfigurationError",
    "ValidationError",
    "ExecutionError",
    "PrerequisiteError",
    "BackendError",
    "DecisionError",
    "UnsupportedBackendError",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Config
    "AppConfig",
    "BouncerConfig",
    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditEventType",
    "AuditResult",
    # Executor
    "CommandExecutor",
    "CommandResult",
    # Metrics
    "MetricsSink",
]
