"""
REST Transport

Transport implementation for the Aptos node REST API.

Transactions are encoded by the node (/transactions/encode_submission),
signed locally and submitted as JSON. HTTP and node errors are mapped onto
the transient/permanent error kinds the orchestrator retries on.
"""

import time
from typing import Any, Dict, Optional

import requests

from jayce.constants import HTTP_TIMEOUT
from jayce.exceptions import (
    PermanentSubmissionError,
    SequenceMismatchError,
    TransientSubmissionError,
)
from jayce.models.transactions import (
    ConfirmationState,
    ConfirmationStatus,
    PublishTransaction,
    TransactionOutcome,
)
from jayce.services.signer import Signer
from jayce.services.transport import Transport

TRANSIENT_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
TRANSIENT_ERROR_CODES = {"mempool_is_full", "internal_error", "health_check_failed"}
SEQUENCE_ERROR_CODES = {"sequence_number_too_old"}
SEQUENCE_VM_STATUSES = ("SEQUENCE_NUMBER_TOO_OLD", "SEQUENCE_NUMBER_TOO_NEW")


class RestTransport(Transport):
    """Talks to one node (and optionally its faucet) over HTTP."""

    def __init__(
        self,
        rest_url: str,
        signer: Signer,
        faucet_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
    ):
        self.rest_url = rest_url.rstrip("/")
        self.faucet_url = faucet_url.rstrip("/") if faucet_url else None
        self.signer = signer
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_sequence_number(self, address: str) -> int:
        response = self._request("GET", f"{self.rest_url}/accounts/{address}")
        if response.status_code == 404:
            return 0
        data = self._json_or_raise(response)
        return int(data["sequence_number"])

    def submit(self, transaction: PublishTransaction) -> TransactionOutcome:
        body = transaction.to_submission()

        response = self._request(
            "POST", f"{self.rest_url}/transactions/encode_submission", json=body
        )
        message_hex = self._json_or_raise(response)
        try:
            message = bytes.fromhex(str(message_hex).removeprefix("0x"))
        except ValueError:
            raise PermanentSubmissionError(
                "Node returned an invalid signing message", context=str(message_hex)[:200]
            )

        signed = dict(body)
        signed["signature"] = {
            "type": "ed25519_signature",
            "public_key": self.signer.public_key,
            "signature": "0x" + self.signer.sign(message).hex(),
        }
        response = self._request("POST", f"{self.rest_url}/transactions", json=signed)
        data = self._json_or_raise(response)
        return TransactionOutcome(
            transaction_hash=data["hash"],
            sequence_number=transaction.sequence_number,
        )

    def confirm(self, transaction_hash: str) -> ConfirmationStatus:
        response = self._request(
            "GET", f"{self.rest_url}/transactions/by_hash/{transaction_hash}"
        )
        if response.status_code == 404:
            return ConfirmationStatus(state=ConfirmationState.PENDING)
        data = self._json_or_raise(response)
        return _confirmation_from_json(data)

    def lookup(self, transaction: PublishTransaction) -> Optional[TransactionOutcome]:
        response = self._request(
            "GET",
            f"{self.rest_url}/accounts/{transaction.sender}/transactions",
            params={"start": transaction.sequence_number, "limit": 1},
        )
        if response.status_code == 404:
            return None
        data = self._json_or_raise(response)
        if not data:
            return None

        committed = data[0]
        if int(committed.get("sequence_number", -1)) != transaction.sequence_number:
            return None
        expected = transaction.to_submission()["payload"]
        payload = committed.get("payload", {})
        if payload.get("function") != expected["function"]:
            return None
        if _normalize_args(payload.get("arguments", [])) != _normalize_args(
            expected["arguments"]
        ):
            return None
        return TransactionOutcome(
            transaction_hash=committed["hash"],
            sequence_number=transaction.sequence_number,
        )

    def fund_account(self, address: str, amount: int) -> None:
        """
        Mint test coins into an account and wait for the mint to land.

        Raises:
            PermanentSubmissionError: If this network has no faucet
        """
        if not self.faucet_url:
            raise PermanentSubmissionError("No faucet available for this network")
        response = self._request(
            "POST",
            f"{self.faucet_url}/mint",
            params={"address": address, "amount": amount},
        )
        data = self._json_or_raise(response)
        hashes = data.get("txn_hashes", []) if isinstance(data, dict) else data
        for tx_hash in hashes:
            self._wait_for(tx_hash)

    def _wait_for(self, transaction_hash: str, attempts: int = 30) -> None:
        for _ in range(attempts):
            status = self.confirm(transaction_hash)
            if status.state == ConfirmationState.SUCCESS:
                return
            if status.state == ConfirmationState.FAILED:
                raise PermanentSubmissionError(
                    f"Faucet transaction {transaction_hash} failed",
                    context=status.vm_status,
                )
            time.sleep(1)
        raise TransientSubmissionError(
            f"Faucet transaction {transaction_hash} not confirmed in time"
        )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise TransientSubmissionError(f"{method} {url} failed", context=str(e))
        except requests.exceptions.RequestException as e:
            raise PermanentSubmissionError(f"{method} {url} failed", context=str(e))

    def _json_or_raise(self, response: requests.Response) -> Any:
        if response.status_code < 300:
            try:
                return response.json()
            except ValueError:
                raise TransientSubmissionError(
                    f"Invalid JSON from {response.url}", context=response.text[:200]
                )
        raise _error_from_response(response)


def _error_from_response(response: requests.Response):
    try:
        body: Dict[str, Any] = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or response.text[:200] or response.reason
    error_code = body.get("error_code")
    summary = f"HTTP {response.status_code}: {message}"

    if error_code in SEQUENCE_ERROR_CODES or any(
        status in str(message) for status in SEQUENCE_VM_STATUSES
    ):
        return SequenceMismatchError(summary, context=error_code)
    if response.status_code in TRANSIENT_STATUS_CODES or error_code in TRANSIENT_ERROR_CODES:
        return TransientSubmissionError(summary, context=error_code)
    return PermanentSubmissionError(summary, context=error_code)


def _confirmation_from_json(data: Dict[str, Any]) -> ConfirmationStatus:
    if data.get("type") == "pending_transaction":
        return ConfirmationStatus(state=ConfirmationState.PENDING)
    version = data.get("version")
    version = int(version) if version is not None else None
    if data.get("success"):
        return ConfirmationStatus(
            state=ConfirmationState.SUCCESS, vm_status=data.get("vm_status"), version=version
        )
    return ConfirmationStatus(
        state=ConfirmationState.FAILED, vm_status=data.get("vm_status"), version=version
    )


def _normalize_args(arguments) -> Any:
    if isinstance(arguments, list):
        return [_normalize_args(a) for a in arguments]
    if isinstance(arguments, str):
        return arguments.lower()
    return arguments
