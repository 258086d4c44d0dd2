"""
Sequence Counter

Single owner of the deployer's sequence number for one run.
"""

import threading
from typing import Callable, Optional, TypeVar

from jayce.exceptions import SequenceMismatchError

T = TypeVar("T")


class SequenceCounter:
    """
    Hands out the account sequence number one submission at a time.

    The number is fetched lazily, advanced locally after every accepted
    submission and only re-read from the network after a mismatch. The lock
    is held for the whole submission, so two submissions can never share a
    number.
    """

    def __init__(self, fetch: Callable[[], int]):
        """
        Args:
            fetch: Reads the current sequence number from the network
        """
        self._fetch = fetch
        self._lock = threading.Lock()
        self._next: Optional[int] = None
        self.resyncs = 0

    @property
    def current(self) -> Optional[int]:
        """Next number to be used, or None before the first fetch."""
        with self._lock:
            return self._next

    def submit(self, send: Callable[[int], T]) -> T:
        """
        Run one submission with the next sequence number.

        Args:
            send: Called with the sequence number; returns once the node
                accepted the transaction

        Returns:
            Whatever send returned

        Raises:
            SequenceMismatchError: After invalidating the local number
            Any other error raised by send, leaving the number unchanged
        """
        with self._lock:
            if self._next is None:
                self._next = self._fetch()
            try:
                result = send(self._next)
            except SequenceMismatchError:
                self._next = None
                self.resyncs += 1
                raise
            self._next += 1
            return result
