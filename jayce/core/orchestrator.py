"""
Deployment Orchestrator

Publishes the packages of a ResolutionPlan: builds one publish transaction
per package with its placeholders bound, submits it through the transport,
waits for confirmation and hands every outcome to the report writer.

Packages whose dependencies are all confirmed run concurrently on a bounded
thread pool. Submissions themselves are serialized by the SequenceCounter.
"""

import hashlib
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional

from jayce.constants import (
    CONFIRM_POLL_INTERVAL,
    CONFIRM_TIMEOUT,
    DEFAULT_GAS_UNIT_PRICE,
    DEFAULT_MAX_GAS_AMOUNT,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
    TRANSACTION_EXPIRATION_SECS,
)
from jayce.core.address_resolver import ResolutionPlan
from jayce.core.report_writer import ReportWriter
from jayce.core.sequence import SequenceCounter
from jayce.exceptions import (
    CancellationError,
    JayceError,
    PermanentSubmissionError,
    SequenceMismatchError,
    TransientSubmissionError,
)
from jayce.logger import DeployLogger
from jayce.models.config import FailurePolicy, ModuleType
from jayce.models.modules import Module
from jayce.models.results import DeploymentResult, DeploymentStatus, ModuleState
from jayce.models.transactions import (
    ConfirmationState,
    PublishTransaction,
    TransactionOutcome,
)
from jayce.services.transport import Transport
from jayce.utils import normalize_address

# How long the scheduler blocks before re-checking timeouts and cancellation
WAIT_SLICE = 0.2


class _NotSubmitted(Exception):
    """The run aborted or was cancelled before this module reached the network."""


class _AlreadyCommitted(Exception):
    """An earlier ambiguous attempt turned out to be on chain."""

    def __init__(self, outcome: TransactionOutcome):
        super().__init__(outcome.transaction_hash)
        self.outcome = outcome


class DeploymentOrchestrator:
    """
    Runs one deployment.

    Per-module lifecycle: PENDING -> SUBMITTED -> CONFIRMED | FAILED, or
    PENDING -> SKIPPED when a dependency failed, the run aborted, or the run
    was cancelled before the module started.
    """

    def __init__(
        self,
        plan: ResolutionPlan,
        transport: Transport,
        account: str,
        module_type: ModuleType,
        reporter: ReportWriter,
        failure_policy: FailurePolicy = FailurePolicy.ABORT_ON_FIRST_FAILURE,
        max_attempts: int = 3,
        max_workers: int = 4,
        timeout: Optional[float] = None,
        counter: Optional[SequenceCounter] = None,
        logger: Optional[DeployLogger] = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
        retry_max_delay: float = RETRY_MAX_DELAY,
        poll_interval: float = CONFIRM_POLL_INTERVAL,
        confirm_timeout: float = CONFIRM_TIMEOUT,
        max_gas_amount: int = DEFAULT_MAX_GAS_AMOUNT,
        gas_unit_price: int = DEFAULT_GAS_UNIT_PRICE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.plan = plan
        self.transport = transport
        self.account = normalize_address(account)
        self.module_type = module_type
        self.reporter = reporter
        self.failure_policy = failure_policy
        self.max_attempts = max_attempts
        self.max_workers = max_workers
        self.timeout = timeout
        self.counter = counter or SequenceCounter(
            lambda: self.transport.get_sequence_number(self.account)
        )
        self.logger = logger
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.poll_interval = poll_interval
        self.confirm_timeout = confirm_timeout
        self.max_gas_amount = max_gas_amount
        self.gas_unit_price = gas_unit_price
        self.clock = clock

        self.binding = plan.binding
        self.states: Dict[str, ModuleState] = {
            m.address_name: ModuleState.PENDING for m in plan.modules
        }
        self.interrupted = False
        self._states_lock = threading.Lock()
        self._cancel = threading.Event()
        self._cancel_reason = "run cancelled"
        self._abort = threading.Event()
        self._abort_cause: Optional[str] = None
        self._started_at: Optional[float] = None

    # Control

    def cancel(self, reason: str = "run cancelled") -> None:
        """Stop scheduling; in-flight modules fail, the rest are skipped."""
        if not self._cancel.is_set():
            self._cancel_reason = reason
            self._log(f"Cancelling: {reason}", "WARNING")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    # Run

    def run(self) -> List[DeploymentResult]:
        """
        Deploy every module of the plan.

        Never raises for per-module failures; each module ends up with exactly
        one result recorded in the report writer.

        Returns:
            Results in resolution order
        """
        self._started_at = self.clock()
        running: Dict[Future, Module] = {}

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="jayce-deploy"
        ) as pool:
            while True:
                try:
                    if not (self.cancelled or self.aborted):
                        self._skip_blocked()
                        self._schedule(pool, running)
                    if not running:
                        break
                    done, _ = wait(
                        list(running), timeout=WAIT_SLICE, return_when=FIRST_COMPLETED
                    )
                    for future in done:
                        module = running.pop(future)
                        self._collect(module, future)
                    self._check_deadline()
                except KeyboardInterrupt:
                    self.interrupted = True
                    self.cancel("interrupted by user")

        self._skip_remaining()
        return self.reporter.results

    def _schedule(self, pool: ThreadPoolExecutor, running: Dict[Future, Module]) -> None:
        started = {m.address_name for m in running.values()}
        for module in self.plan.modules:
            if len(running) >= self.max_workers:
                return
            name = module.address_name
            if self._state(name) is not ModuleState.PENDING or name in started:
                continue
            deps = self.plan.dependencies.get(name, frozenset())
            if all(self._state(d) is ModuleState.CONFIRMED for d in deps):
                self._log(f"Scheduling {name}", "DEBUG")
                running[pool.submit(self._deploy, module)] = module

    def _skip_blocked(self) -> None:
        # Plan order is topological, so one pass sees failures propagate
        for module in self.plan.modules:
            name = module.address_name
            if self._state(name) is not ModuleState.PENDING:
                continue
            for dep in sorted(self.plan.dependencies.get(name, frozenset())):
                if self._state(dep) in (ModuleState.FAILED, ModuleState.SKIPPED):
                    self._finalize(
                        self._skipped(
                            module, "dependency_failed", f"Dependency '{dep}' did not deploy"
                        )
                    )
                    break

    def _skip_remaining(self) -> None:
        for module in self.plan.modules:
            if self._state(module.address_name) is not ModuleState.PENDING:
                continue
            if self.cancelled:
                result = self._skipped(module, "cancelled", self._cancel_reason)
            elif self.aborted:
                result = self._skipped(
                    module, "aborted", f"Aborted after '{self._abort_cause}' failed"
                )
            else:
                result = self._skipped(module, "dependency_failed", "Dependencies did not deploy")
            self._finalize(result)

    def _check_deadline(self) -> None:
        if self.timeout is None or self.cancelled:
            return
        if self.clock() - self._started_at >= self.timeout:
            self.cancel(f"timed out after {self.timeout:g}s")

    def _collect(self, module: Module, future: Future) -> None:
        error = future.exception()
        if error is None:
            self._finalize(future.result())
            return
        # Bug in the worker itself: still produce a result for the report
        self._log(f"{module.address_name}: unexpected {type(error).__name__}: {error}", "ERROR")
        self._finalize(
            DeploymentResult(
                address_name=module.address_name,
                module_path=str(module.path),
                status=DeploymentStatus.FAILED,
                error_kind="internal",
                error=f"{type(error).__name__}: {error}",
            )
        )

    def _finalize(self, result: DeploymentResult) -> None:
        state = {
            DeploymentStatus.SUCCEEDED: ModuleState.CONFIRMED,
            DeploymentStatus.FAILED: ModuleState.FAILED,
            DeploymentStatus.SKIPPED: ModuleState.SKIPPED,
        }[result.status]
        self._set_state(result.address_name, state)
        self.reporter.record(result)

        if result.status is DeploymentStatus.SUCCEEDED:
            if self.logger:
                self.logger.success(f"{result.address_name} published at {result.address}")
        elif result.status is DeploymentStatus.FAILED:
            if self.logger:
                self.logger.log_error(
                    f"{result.address_name} failed", context=result.error
                )
            if (
                self.failure_policy is FailurePolicy.ABORT_ON_FIRST_FAILURE
                and result.error_kind != CancellationError.kind
                and not self.aborted
            ):
                self._abort_cause = result.address_name
                self._abort.set()
        elif self.logger:
            self.logger.warning(f"{result.address_name} skipped: {result.error}")

    # Worker

    def _deploy(self, module: Module) -> DeploymentResult:
        name = module.address_name
        sent: Dict[int, PublishTransaction] = {}
        ambiguous: set[int] = set()
        attempts = 0
        outcome: Optional[TransactionOutcome] = None

        try:
            while True:
                self._check_stopped(sent)
                attempts += 1
                try:
                    outcome = self.counter.submit(
                        lambda seq: self._send(module, seq, sent, ambiguous)
                    )
                    break
                except _AlreadyCommitted as e:
                    outcome = e.outcome
                    break
                except TransientSubmissionError as e:
                    self._log(f"{name}: attempt {attempts} failed: {e.message}", "WARNING")
                    if attempts >= self.max_attempts:
                        raise
                    self._backoff(attempts)

            self._set_state(name, ModuleState.SUBMITTED)
            self._log(
                f"{name}: submitted {outcome.transaction_hash} (seq {outcome.sequence_number})"
            )
            self._await_confirmation(outcome.transaction_hash)

            address = self.module_type.package_address(self.account, outcome.sequence_number)
            self.binding.bind(name, address)
            return DeploymentResult(
                address_name=name,
                module_path=str(module.path),
                status=DeploymentStatus.SUCCEEDED,
                transaction_hash=outcome.transaction_hash,
                sequence_number=outcome.sequence_number,
                address=address,
                attempts=attempts,
            )
        except _NotSubmitted:
            if self.cancelled:
                return self._skipped(module, "cancelled", self._cancel_reason)
            return self._skipped(
                module, "aborted", f"Aborted after '{self._abort_cause}' failed"
            )
        except (JayceError, ValueError) as e:
            kind = getattr(e, "kind", "permanent")
            message = e.format_message() if isinstance(e, JayceError) else str(e)
            return DeploymentResult(
                address_name=name,
                module_path=str(module.path),
                status=DeploymentStatus.FAILED,
                transaction_hash=outcome.transaction_hash if outcome else None,
                sequence_number=outcome.sequence_number if outcome else None,
                attempts=attempts,
                error_kind=kind,
                error=message,
            )

    def _send(
        self,
        module: Module,
        sequence_number: int,
        sent: Dict[int, PublishTransaction],
        ambiguous: set[int],
    ) -> TransactionOutcome:
        """Runs under the sequence counter's lock."""
        self._check_stopped(sent)

        transaction = sent.get(sequence_number)
        if transaction is None:
            # The number moved on since an ambiguous attempt, which may have landed
            for earlier in sorted(ambiguous):
                found = self.transport.lookup(sent[earlier])
                if found is not None:
                    self._log(
                        f"{module.address_name}: earlier attempt committed as {found.transaction_hash}"
                    )
                    raise _AlreadyCommitted(found)
            transaction = self._build(module, sequence_number)
            sent[sequence_number] = transaction

        try:
            return self.transport.submit(transaction)
        except SequenceMismatchError:
            # An earlier attempt at this number may have landed after all
            if sequence_number in ambiguous:
                found = self.transport.lookup(transaction)
                if found is not None:
                    self._log(
                        f"{module.address_name}: earlier attempt committed as {found.transaction_hash}"
                    )
                    return found
            raise
        except TransientSubmissionError:
            ambiguous.add(sequence_number)
            raise

    def _build(self, module: Module, sequence_number: int) -> PublishTransaction:
        own_address = self.module_type.package_address(self.account, sequence_number)
        addresses = self.binding.snapshot()
        addresses[module.address_name] = own_address
        try:
            code = module.substitute(addresses)
        except KeyError as e:
            raise PermanentSubmissionError(
                f"Address {e} is not bound for module '{module.address_name}'"
            )

        digest = hashlib.sha256()
        digest.update(f"{self.account}:{sequence_number}:{module.address_name}".encode())
        digest.update(module.metadata)
        for blob in code:
            digest.update(blob)

        return PublishTransaction(
            sender=self.account,
            sequence_number=sequence_number,
            function=self.module_type.publish_function,
            arguments=("0x" + module.metadata.hex(),)
            + tuple("0x" + blob.hex() for blob in code),
            max_gas_amount=self.max_gas_amount,
            gas_unit_price=self.gas_unit_price,
            expiration_timestamp_secs=int(time.time()) + TRANSACTION_EXPIRATION_SECS,
            submission_key=digest.hexdigest(),
        )

    def _await_confirmation(self, transaction_hash: str) -> None:
        """
        Poll until the transaction is committed.

        Raises:
            PermanentSubmissionError: If it failed on chain
            TransientSubmissionError: If it did not commit in time
            CancellationError: If the run was cancelled meanwhile
        """
        deadline = self.clock() + self.confirm_timeout
        last_error: Optional[TransientSubmissionError] = None
        while True:
            self._check_cancelled()
            try:
                status = self.transport.confirm(transaction_hash)
            except TransientSubmissionError as e:
                last_error = e
            else:
                if status.state is ConfirmationState.SUCCESS:
                    return
                if status.state is ConfirmationState.FAILED:
                    raise PermanentSubmissionError(
                        f"Transaction {transaction_hash} failed on chain",
                        context=status.vm_status,
                    )
            if self.clock() >= deadline:
                raise TransientSubmissionError(
                    f"Transaction {transaction_hash} not confirmed within {self.confirm_timeout:g}s",
                    context=last_error.message if last_error else None,
                )
            if self._cancel.wait(self.poll_interval):
                raise CancellationError(self._cancel_reason)

    def _backoff(self, attempt: int) -> None:
        delay = min(self.retry_base_delay * (2 ** (attempt - 1)), self.retry_max_delay)
        if self._cancel.wait(delay):
            raise CancellationError(self._cancel_reason)

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise CancellationError(self._cancel_reason)

    def _check_stopped(self, sent: Dict[int, PublishTransaction]) -> None:
        # Nothing sent yet means nothing can be on chain: skip rather than fail
        if not sent and (self.cancelled or self.aborted):
            raise _NotSubmitted()
        self._check_cancelled()

    # Helpers

    def _skipped(self, module: Module, kind: str, reason: str) -> DeploymentResult:
        return DeploymentResult(
            address_name=module.address_name,
            module_path=str(module.path),
            status=DeploymentStatus.SKIPPED,
            error_kind=kind,
            error=reason,
        )

    def _state(self, name: str) -> ModuleState:
        with self._states_lock:
            return self.states[name]

    def _set_state(self, name: str, state: ModuleState) -> None:
        with self._states_lock:
            self.states[name] = state

    def _log(self, message: str, level: str = "INFO") -> None:
        if self.logger:
            self.logger.log(message, level)
