"""
Transport Interface

Contract between the orchestrator and whatever talks to the node.
"""

from abc import ABC, abstractmethod
from typing import Optional

from jayce.models.transactions import (
    ConfirmationStatus,
    PublishTransaction,
    TransactionOutcome,
)


class Transport(ABC):
    """
    Node client used by the orchestrator.

    Every method may raise TransientSubmissionError (including
    SequenceMismatchError) or PermanentSubmissionError.
    """

    @abstractmethod
    def get_sequence_number(self, address: str) -> int:
        """Current sequence number of an account (0 if it does not exist yet)."""

    @abstractmethod
    def submit(self, transaction: PublishTransaction) -> TransactionOutcome:
        """Sign and submit a transaction; returns once the node accepted it."""

    @abstractmethod
    def confirm(self, transaction_hash: str) -> ConfirmationStatus:
        """Poll a submitted transaction once."""

    @abstractmethod
    def lookup(self, transaction: PublishTransaction) -> Optional[TransactionOutcome]:
        """
        Find an already committed transaction with the same sender, sequence
        number and payload, or None.
        """

    def fund_account(self, address: str, amount: int) -> None:
        """Fund an account from the network faucet."""
        raise NotImplementedError(f"{type(self).__name__} cannot fund accounts")
