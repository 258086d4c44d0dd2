"""
Report Writer

Collects per-module results during a run and writes deploy-report.json
once, atomically, at the end.
"""

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from jayce.exceptions import ReportWriteError
from jayce.models.results import DeploymentResult, Report


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ReportWriter:
    """Thread-safe result sink for one run."""

    def __init__(
        self,
        path: Path,
        network: str,
        account: str,
        module_type: str,
        order: Optional[List[str]] = None,
    ):
        """
        Args:
            path: Destination of the report
            network: Network name
            account: Deployer account address
            module_type: Publication mode
            order: Address names in resolution order; results are written in
                this order regardless of when they arrived
        """
        self.path = Path(path)
        self.order = list(order or [])
        self.report = Report(
            network=network,
            account=account,
            module_type=module_type,
            started_at=_now(),
        )
        self._results: Dict[str, DeploymentResult] = {}
        self._lock = threading.Lock()
        self._written = False

    def record(self, result: DeploymentResult) -> None:
        """Add a finalized result. A module can only be recorded once."""
        with self._lock:
            if self._written:
                raise ReportWriteError("Report already written")
            if result.address_name in self._results:
                raise ValueError(f"Result for '{result.address_name}' already recorded")
            self._results[result.address_name] = result

    @property
    def results(self) -> List[DeploymentResult]:
        """Results so far, in resolution order."""
        with self._lock:
            return self._ordered()

    def _ordered(self) -> List[DeploymentResult]:
        rank = {name: i for i, name in enumerate(self.order)}
        return sorted(
            self._results.values(),
            key=lambda r: (rank.get(r.address_name, len(rank)), r.address_name),
        )

    def write(self) -> Report:
        """
        Write the report to disk.

        The file is written to a temporary sibling and renamed over the
        destination, so readers see either the old file or the complete new one.

        Returns:
            The Report that was written

        Raises:
            ReportWriteError: On filesystem failure or when called twice
        """
        with self._lock:
            if self._written:
                raise ReportWriteError(f"Report already written to {self.path}")
            self._written = True
            self.report.results = self._ordered()
            self.report.finished_at = _now()
            payload = json.dumps(self.report.to_dict(), indent=2) + "\n"

        directory = self.path.parent if str(self.path.parent) else Path(".")
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp_file:
                tmp_name = tmp_file.name
                tmp_file.write(payload)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ReportWriteError(f"Failed to write report to {self.path}", context=str(e))

        return self.report
