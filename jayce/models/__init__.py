"""
Jayce Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .config import (
    DeployConfig,
    FailurePolicy,
    ModuleType,
    Network,
)
from .modules import (
    AddressBinding,
    Module,
)
from .results import (
    DeploymentResult,
    DeploymentStatus,
    ModuleState,
    Report,
)
from .transactions import (
    ConfirmationState,
    ConfirmationStatus,
    PublishTransaction,
    TransactionOutcome,
)

__all__ = [
    # Config
    "DeployConfig",
    "FailurePolicy",
    "ModuleType",
    "Network",
    # Modules
    "AddressBinding",
    "Module",
    # Results
    "DeploymentResult",
    "DeploymentStatus",
    "ModuleState",
    "Report",
    # Transactions
    "ConfirmationState",
    "ConfirmationStatus",
    "PublishTransaction",
    "TransactionOutcome",
]
