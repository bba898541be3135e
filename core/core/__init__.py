"""converge-all core library.

Convergence core of the converge-all agent: given the desired state of a
package and what its provider reports, decide whether they are in sync,
correct them if not, and record the outcome.

Module Overview:
    config: YAML-based configuration management (XDG spec compliant)
    errors: Exception hierarchy
    events: Immutable event records and their encoding
    interfaces: Provider capability vocabulary and abstract interfaces
    models: Desired/observed values and configuration models
    report: Transaction reports and JSON report storage
    resource: Package resource declarations
    sources: Package source resolution
    state: Install state machine and latest-version cache
    status: Per-resource transaction status and snapshots
    transaction: Sequential convergence pass driver
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version

from core.config import ConfigError, ConfigManager, YamlConfigLoader, get_config_dir
from core.errors import (
    CommandError,
    ConvergeError,
    DuplicateProviderError,
    InvalidEventStatusError,
    QueryError,
    RegistryError,
    SourceError,
    StatusFinalizedError,
    SyncActionError,
    UnknownParentError,
    UnknownProviderError,
    UnsupportedOperationError,
)
from core.events import EventName, EventRecord, EventStatus
from core.interfaces import Capability, Feature, Provider, ProviderFactory
from core.models import (
    NOT_INSTALLED,
    AgentConfig,
    DesiredKind,
    DesiredValue,
    LogLevel,
    ObservedState,
    PackageInfo,
)
from core.report import ReportStore, TransactionReport, get_report_dir
from core.resource import PackageResource
from core.sources import SourceResolver, validate_source
from core.state import InstallState, LatestVersionCache, Stage
from core.status import PERSISTED_FIELDS, StatusSnapshot, TransactionStatus
from core.transaction import Transaction

try:
    __version__ = get_package_version("converge-all")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "NOT_INSTALLED",
    "PERSISTED_FIELDS",
    "AgentConfig",
    "Capability",
    "CommandError",
    "ConfigError",
    "ConfigManager",
    "ConvergeError",
    "DesiredKind",
    "DesiredValue",
    "DuplicateProviderError",
    "EventName",
    "EventRecord",
    "EventStatus",
    "Feature",
    "InstallState",
    "InvalidEventStatusError",
    "LatestVersionCache",
    "LogLevel",
    "ObservedState",
    "PackageInfo",
    "PackageResource",
    "Provider",
    "ProviderFactory",
    "QueryError",
    "RegistryError",
    "ReportStore",
    "SourceError",
    "SourceResolver",
    "Stage",
    "StatusFinalizedError",
    "StatusSnapshot",
    "SyncActionError",
    "Transaction",
    "TransactionReport",
    "TransactionStatus",
    "UnknownParentError",
    "UnknownProviderError",
    "UnsupportedOperationError",
    "YamlConfigLoader",
    "get_config_dir",
    "get_report_dir",
    "validate_source",
]
