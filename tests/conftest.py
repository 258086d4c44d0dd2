"""
Shared fixtures for jayce tests

FakeTransport is an in-memory single-account chain with strict sequence
numbers. Package factories write compiled-package layouts to tmp_path.
"""

import hashlib
import threading
from pathlib import Path

import pytest

from jayce.core.address_resolver import resolve_addresses
from jayce.core.orchestrator import DeploymentOrchestrator
from jayce.core.report_writer import ReportWriter
from jayce.exceptions import SequenceMismatchError, TransientSubmissionError
from jayce.models.config import ModuleType
from jayce.models.modules import Module
from jayce.models.transactions import (
    ConfirmationState,
    ConfirmationStatus,
    TransactionOutcome,
)
from jayce.services.transport import Transport

ACCOUNT = "0x" + "ab" * 32
PRIVATE_KEY = "0x" + "01" * 32


def sentinel(name: str) -> bytes:
    """Dev address a package compiles the placeholder `name` with."""
    return hashlib.sha256(name.encode()).digest()


def sentinel_hex(name: str) -> str:
    return "0x" + sentinel(name).hex()


class FakeTransport(Transport):
    """In-memory chain for one deployer account."""

    def __init__(self, sequence_number: int = 0):
        self.sequence_number = sequence_number
        self.committed = []
        self.hashes = {}
        # module name -> exceptions raised by its next submissions
        self.submit_errors = {}
        # modules whose first accepted submission is reported as a failure
        self.lost_acks = set()
        self.failed_on_chain = set()
        self.never_confirm = set()
        self.submissions = []
        self.fetches = 0
        self.lookups = 0
        self.funded = []
        self._lock = threading.Lock()

    @staticmethod
    def module_name(transaction) -> str:
        return bytes.fromhex(transaction.arguments[0][2:]).decode().removeprefix("meta:")

    def committed_names(self):
        return [self.module_name(tx) for tx in self.committed]

    def get_sequence_number(self, address):
        with self._lock:
            self.fetches += 1
            return self.sequence_number

    def submit(self, transaction):
        name = self.module_name(transaction)
        with self._lock:
            self.submissions.append(name)
            errors = self.submit_errors.get(name)
            if errors:
                raise errors.pop(0)
            if transaction.sequence_number != self.sequence_number:
                raise SequenceMismatchError(
                    f"expected {self.sequence_number}, got {transaction.sequence_number}"
                )
            tx_hash = "0x" + hashlib.sha256(transaction.submission_key.encode()).hexdigest()
            self.committed.append(transaction)
            self.hashes[tx_hash] = transaction
            self.sequence_number += 1
            if name in self.lost_acks:
                self.lost_acks.discard(name)
                raise TransientSubmissionError("connection reset by peer")
            return TransactionOutcome(tx_hash, transaction.sequence_number)

    def confirm(self, transaction_hash):
        name = self.module_name(self.hashes[transaction_hash])
        if name in self.never_confirm:
            return ConfirmationStatus(state=ConfirmationState.PENDING)
        if name in self.failed_on_chain:
            return ConfirmationStatus(state=ConfirmationState.FAILED, vm_status="MOVE_ABORT")
        return ConfirmationStatus(state=ConfirmationState.SUCCESS, vm_status="Executed successfully")

    def lookup(self, transaction):
        with self._lock:
            self.lookups += 1
            for tx_hash, committed in self.hashes.items():
                if (
                    committed.sequence_number == transaction.sequence_number
                    and committed.submission_key == transaction.submission_key
                ):
                    return TransactionOutcome(tx_hash, committed.sequence_number)
            return None

    def fund_account(self, address, amount):
        self.funded.append((address, amount))


def build_module(name: str, references=()) -> Module:
    placeholders = {n: sentinel(n) for n in (name, *references)}
    code = b"\xa1\x1c\xeb\x0b" + b"".join(placeholders.values()) + b"\x00"
    return Module(
        address_name=name,
        package_name=name.replace("_addr", "").title(),
        path=Path(f"/packages/{name}"),
        metadata=b"meta:" + name.encode(),
        code=(code,),
        placeholders=placeholders,
    )


def write_package(root: Path, name: str, references=(), package_name=None, modules=("main",)) -> Path:
    """
    Write a package directory as `aptos move compile --dev` leaves it.

    Every .mv file embeds the sentinel of each placeholder.
    """
    package_name = package_name or name.replace("_addr", "").title()
    package_dir = root / name
    names = (name, *references)

    addresses = "\n".join(f'{n} = "_"' for n in names)
    dev_addresses = "\n".join(f'{n} = "{sentinel_hex(n)}"' for n in names)
    package_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / "Move.toml").write_text(
        f'[package]\nname = "{package_name}"\nversion = "1.0.0"\n\n'
        f"[addresses]\n{addresses}\n\n[dev-addresses]\n{dev_addresses}\n"
    )

    build_dir = package_dir / "build" / package_name
    bytecode_dir = build_dir / "bytecode_modules"
    bytecode_dir.mkdir(parents=True)
    (build_dir / "package-metadata.bcs").write_bytes(b"meta:" + name.encode())
    for module in modules:
        body = module.encode() + b"".join(sentinel(n) for n in names)
        (bytecode_dir / f"{module}.mv").write_bytes(b"\xa1\x1c\xeb\x0b" + body)
    return package_dir


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def make_module():
    return build_module


@pytest.fixture
def package_factory(tmp_path):
    def factory(name, references=(), **kwargs):
        return write_package(tmp_path / "packages", name, references, **kwargs)

    return factory


@pytest.fixture
def make_orchestrator(tmp_path):
    """Build an orchestrator over a transport without running it."""

    def build(modules, transport, module_type=ModuleType.OBJECT, deployed=None, **kwargs):
        plan = resolve_addresses(modules, module_type, ACCOUNT, deployed)
        reporter = ReportWriter(
            tmp_path / "deploy-report.json",
            network="devnet",
            account=ACCOUNT,
            module_type=module_type.value,
            order=plan.order,
        )
        kwargs.setdefault("retry_base_delay", 0)
        kwargs.setdefault("poll_interval", 0.01)
        return DeploymentOrchestrator(
            plan,
            transport,
            account=ACCOUNT,
            module_type=module_type,
            reporter=reporter,
            **kwargs,
        )

    return build


@pytest.fixture
def deploy(make_orchestrator):
    """Run a full orchestrated deployment against a transport."""

    def run(modules, transport, **kwargs):
        orchestrator = make_orchestrator(modules, transport, **kwargs)
        results = orchestrator.run()
        return orchestrator, {r.address_name: r for r in results}

    return run
