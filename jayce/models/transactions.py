"""
Transaction Models

Data passed between the orchestrator and the transport.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, List


class ConfirmationState(Enum):
    """On-chain state of a submitted transaction."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class PublishTransaction:
    """
    An unsigned publish transaction.

    Built once per (module, sequence number). Resubmitting the same instance
    produces the same signed transaction, so a retry can never publish twice.
    """

    sender: str
    sequence_number: int
    function: str
    arguments: tuple[str, ...]
    max_gas_amount: int
    gas_unit_price: int
    expiration_timestamp_secs: int
    submission_key: str
    type_arguments: tuple[str, ...] = ()

    def to_submission(self) -> Dict[str, Any]:
        """JSON body understood by the node's submission endpoints."""
        return {
            "sender": self.sender,
            "sequence_number": str(self.sequence_number),
            "max_gas_amount": str(self.max_gas_amount),
            "gas_unit_price": str(self.gas_unit_price),
            "expiration_timestamp_secs": str(self.expiration_timestamp_secs),
            "payload": {
                "type": "entry_function_payload",
                "function": self.function,
                "type_arguments": list(self.type_arguments),
                "arguments": _json_arguments(self.arguments),
            },
        }

    def __repr__(self) -> str:
        return f"PublishTransaction(sender={self.sender[:10]}..., seq={self.sequence_number}, key={self.submission_key[:12]})"


def _json_arguments(arguments: tuple[str, ...]) -> List[Any]:
    # First argument is the metadata blob, the rest are module blobs
    if not arguments:
        return []
    return [arguments[0], list(arguments[1:])]


@dataclass(frozen=True)
class TransactionOutcome:
    """Node accepted the transaction into its mempool."""

    transaction_hash: str
    sequence_number: int


@dataclass(frozen=True)
class ConfirmationStatus:
    """Result of polling a transaction."""

    state: ConfirmationState
    vm_status: Optional[str] = None
    version: Optional[int] = None
