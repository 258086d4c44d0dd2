"""
Result Models

Dataclass models for per-module deployment outcomes and the run report.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from enum import Enum


class ModuleState(Enum):
    """Lifecycle of a module inside the orchestrator."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (ModuleState.CONFIRMED, ModuleState.FAILED, ModuleState.SKIPPED)


class DeploymentStatus(Enum):
    """Final status recorded in the report."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of one module. Never changed once created."""

    address_name: str
    module_path: str
    status: DeploymentStatus
    transaction_hash: Optional[str] = None
    sequence_number: Optional[int] = None
    address: Optional[str] = None
    attempts: int = 0
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        """Check if module was published."""
        return self.status == DeploymentStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: Dict[str, Any] = {
            "address_name": self.address_name,
            "module_path": self.module_path,
            "status": self.status.value,
            "transaction_hash": self.transaction_hash,
            "sequence_number": self.sequence_number,
            "address": self.address,
            "attempts": self.attempts,
        }
        if self.error is not None:
            result["error"] = {"kind": self.error_kind, "message": self.error}
        return result

    def __repr__(self) -> str:
        return f"DeploymentResult(name={self.address_name}, status={self.status.value})"


@dataclass
class Report:
    """Everything written to the deploy report."""

    network: str
    account: str
    module_type: str
    started_at: str
    finished_at: Optional[str] = None
    results: List[DeploymentResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True only when every module succeeded."""
        return bool(self.results) and all(r.is_success for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "network": self.network,
            "account": self.account,
            "module_type": self.module_type,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
        }

    def __repr__(self) -> str:
        return f"Report(network={self.network}, results={len(self.results)}, success={self.success})"
