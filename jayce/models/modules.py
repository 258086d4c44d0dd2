"""
Module Models

Compiled packages as read from disk, and the address binding built while
deploying them.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


@dataclass(frozen=True)
class Module:
    """A compiled Move package ready to be published."""

    address_name: str
    package_name: str
    path: Path
    metadata: bytes
    code: tuple[bytes, ...]
    # placeholder name -> 32-byte sentinel it was compiled with
    placeholders: Dict[str, bytes] = field(default_factory=dict)

    @property
    def references(self) -> frozenset[str]:
        """Named addresses this package needs from other packages."""
        return frozenset(
            name for name in self.placeholders if name != self.address_name
        )

    def substitute(self, binding: Dict[str, str]) -> tuple[bytes, ...]:
        """
        Replace every placeholder sentinel with its bound address.

        Args:
            binding: name -> normalized address, must cover every placeholder

        Returns:
            Module bytecode with real addresses

        Raises:
            KeyError: If a placeholder is not bound
        """
        replacements = [
            (sentinel, bytes.fromhex(binding[name][2:]))
            for name, sentinel in self.placeholders.items()
        ]
        patched = []
        for blob in self.code:
            for sentinel, address in replacements:
                blob = blob.replace(sentinel, address)
            patched.append(blob)
        return tuple(patched)

    def __repr__(self) -> str:
        return f"Module(name={self.address_name}, package={self.package_name}, modules={len(self.code)})"


class AddressBinding:
    """
    Symbolic name -> concrete address map.

    Grows while the run progresses; a name cannot be rebound. Safe to share
    between worker threads.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._addresses: Dict[str, str] = dict(initial or {})

    def bind(self, name: str, address: str) -> None:
        with self._lock:
            existing = self._addresses.get(name)
            if existing is not None and existing != address:
                raise ValueError(
                    f"Address '{name}' already bound to {existing}, refusing {address}"
                )
            self._addresses[name] = address

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._addresses)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._addresses

    def __len__(self) -> int:
        with self._lock:
            return len(self._addresses)

    def __repr__(self) -> str:
        return f"AddressBinding(names={len(self)})"
