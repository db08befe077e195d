# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Transaction submission with rate-limit backoff.

A submission runs the full cycle for one payload::

    Built -> Signed -> Submitted -> Confirmed-Success
                                 -> Confirmed-Failed
                                 -> Error

The REST client fills in the sequence number, gas settings and expiration
when the transaction is built. A rate limited step (HTTP 429, or an error
message mentioning a rate limit) is re-run after an exponential delay of
``base_delay * 2 ** attempt`` seconds, up to ``max_attempts`` attempts.
Until the node accepts the transaction the retried step is build, sign and
submit; after that only the confirmation poll is retried, and a transaction
is never signed twice once accepted. Other failures are raised immediately.

A committed transaction may still have failed in the VM. The submitter
returns the :class:`TransactionResult` either way; callers check it with
:meth:`TransactionResult.raise_for_status`.
"""

from __future__ import annotations

import asyncio
import logging
import unittest
import unittest.mock
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from aptos_sdk.account import Account
from aptos_sdk.async_client import ApiError, RestClient
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument, TransactionPayload

from .errors import NetworkError, RateLimitExceeded, TransactionFailed
from .events import Event

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
RATE_LIMIT_MARKER = "rate limit"


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings for rate-limited submissions.

    With the defaults a submission is tried three times, sleeping 10 and 20
    seconds between attempts.
    """

    max_attempts: int = 3
    base_delay: float = 5.0

    def delay(self, attempt: int) -> float:
        """Seconds to wait after rate-limited attempt ``attempt`` (1-based)."""
        return self.base_delay * 2**attempt


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a committed transaction."""

    hash: str
    success: bool
    vm_status: str
    events: List[Event] = field(default_factory=list)
    version: Optional[int] = None

    @staticmethod
    def parse(transaction: Dict[str, Any]) -> TransactionResult:
        version = transaction.get("version")
        return TransactionResult(
            transaction["hash"],
            bool(transaction.get("success", False)),
            transaction.get("vm_status", ""),
            [Event.parse(event) for event in transaction.get("events", [])],
            int(version) if version is not None else None,
        )

    def raise_for_status(self) -> TransactionResult:
        """Raise TransactionFailed if the VM did not report success."""
        if not self.success:
            raise TransactionFailed(self.hash, self.vm_status)
        return self


def is_rate_limited(error: Exception) -> bool:
    if isinstance(error, ApiError) and error.status_code == RATE_LIMIT_STATUS:
        return True
    if (
        isinstance(error, httpx.HTTPStatusError)
        and error.response.status_code == RATE_LIMIT_STATUS
    ):
        return True
    return RATE_LIMIT_MARKER in str(error).lower()


class TransactionSubmitter:
    """Signs, submits and confirms transactions for a single REST client."""

    client: RestClient
    retry_policy: RetryPolicy
    poll_interval: float

    def __init__(
        self,
        client: RestClient,
        retry_policy: RetryPolicy = RetryPolicy(),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        poll_interval: float = 1.0,
    ):
        self.client = client
        self.retry_policy = retry_policy
        self.poll_interval = poll_interval
        self._sleep = sleep

    async def submit(
        self, sender: Account, payload: TransactionPayload
    ) -> TransactionResult:
        """
        Sign, submit and wait for a payload, retrying on rate limits.

        Building and submitting is retried as a whole. Once the node has
        accepted the transaction only the confirmation is retried, so a rate
        limit while polling never signs a second transaction.

        :param sender: Account that signs and pays for the transaction
        :param payload: Entry function payload to execute
        :return: The committed transaction, successful or not
        :raises RateLimitExceeded: If every attempt of a step was rate limited
        :raises NetworkError: On any other submission or confirmation failure
        """
        txn_hash = await self._with_retry(
            "Transaction submission", lambda: self._sign_and_submit(sender, payload)
        )
        await self._with_retry(
            f"Confirming {txn_hash}", lambda: self.wait_for_commit(txn_hash)
        )
        transaction = await self._with_retry(
            f"Fetching {txn_hash}", lambda: self.client.transaction_by_hash(txn_hash)
        )
        return TransactionResult.parse(transaction)

    async def _with_retry(self, step: str, operation: Callable[[], Awaitable[Any]]) -> Any:
        max_attempts = self.retry_policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                return await operation()
            except (ApiError, httpx.HTTPError, NetworkError) as e:
                if not is_rate_limited(e):
                    if isinstance(e, NetworkError):
                        raise
                    raise NetworkError(
                        f"{step} failed: {e}",
                        getattr(e, "status_code", None),
                    ) from e
                if attempt >= max_attempts:
                    raise RateLimitExceeded(max_attempts, str(e)) from e
                delay = self.retry_policy.delay(attempt)
                logger.warning(
                    "%s rate limited, waiting %.0fs before retry %d/%d",
                    step,
                    delay,
                    attempt,
                    max_attempts,
                )
                await self._sleep(delay)
        raise AssertionError("unreachable")

    async def _sign_and_submit(self, sender: Account, payload: TransactionPayload) -> str:
        signed_transaction = await self.client.create_bcs_signed_transaction(
            sender, payload
        )
        txn_hash = await self.client.submit_bcs_transaction(signed_transaction)
        logger.info("Transaction submitted: %s", txn_hash)
        return txn_hash

    async def wait_for_commit(self, txn_hash: str):
        """
        Poll until the node no longer reports the transaction as pending.

        Bounded by ``transaction_wait_in_seconds`` of the client's config.
        """
        timeout = self.client.client_config.transaction_wait_in_seconds
        waited = 0.0
        while await self.client.transaction_pending(txn_hash):
            if waited >= timeout:
                raise NetworkError(
                    f"Transaction {txn_hash} not committed after {timeout}s"
                )
            await self._sleep(self.poll_interval)
            waited += self.poll_interval


def entry_function_payload(
    module: str,
    function: str,
    arguments: List[TransactionArgument],
) -> TransactionPayload:
    return TransactionPayload(EntryFunction.natural(module, function, [], arguments))


class Test(unittest.IsolatedAsyncioTestCase):
    committed = {
        "type": "user_transaction",
        "hash": "0xabc",
        "version": "42",
        "success": True,
        "vm_status": "Executed successfully",
        "events": [
            {
                "type": "0xAAA::ufc_nft::SeriesCreatedEvent",
                "data": {"series_id": "1"},
                "sequence_number": "0",
            }
        ],
    }

    def setUp(self):
        self.client = unittest.mock.MagicMock()
        self.client.client_config.transaction_wait_in_seconds = 20
        self.client.create_bcs_signed_transaction = unittest.mock.AsyncMock(
            return_value=object()
        )
        self.client.submit_bcs_transaction = unittest.mock.AsyncMock(
            return_value="0xabc"
        )
        self.client.transaction_pending = unittest.mock.AsyncMock(return_value=False)
        self.client.transaction_by_hash = unittest.mock.AsyncMock(
            return_value=self.committed
        )
        self.sleep = unittest.mock.AsyncMock()
        self.submitter = TransactionSubmitter(self.client, sleep=self.sleep)
        self.account = Account.generate()
        self.payload = entry_function_payload(
            "0x1::ufc_nft",
            "create_collection",
            [TransactionArgument("UFC", Serializer.str)],
        )

    async def test_success(self):
        result = await self.submitter.submit(self.account, self.payload)
        self.assertEqual(result.hash, "0xabc")
        self.assertTrue(result.success)
        self.assertEqual(result.version, 42)
        self.assertEqual(result.events[0].data, {"series_id": "1"})
        self.sleep.assert_not_called()

    async def test_retry_then_success(self):
        self.client.submit_bcs_transaction.side_effect = [
            ApiError("Too Many Requests", 429),
            ApiError("per-IP rate limit exceeded", 400),
            "0xabc",
        ]
        result = await self.submitter.submit(self.account, self.payload)
        self.assertTrue(result.success)
        self.assertEqual(self.client.submit_bcs_transaction.await_count, 3)
        self.assertEqual(
            self.sleep.await_args_list,
            [unittest.mock.call(10.0), unittest.mock.call(20.0)],
        )

    async def test_retry_exhausted(self):
        self.client.submit_bcs_transaction.side_effect = ApiError("slow down", 429)
        with self.assertRaises(RateLimitExceeded) as cm:
            await self.submitter.submit(self.account, self.payload)
        self.assertEqual(cm.exception.attempts, 3)
        self.assertEqual(cm.exception.last_message, "slow down")
        self.assertEqual(self.client.submit_bcs_transaction.await_count, 3)
        self.assertEqual(self.sleep.await_count, 2)

    async def test_other_error_not_retried(self):
        self.client.submit_bcs_transaction.side_effect = ApiError(
            "SEQUENCE_NUMBER_TOO_OLD", 400
        )
        with self.assertRaises(NetworkError) as cm:
            await self.submitter.submit(self.account, self.payload)
        self.assertEqual(cm.exception.status_code, 400)
        self.assertEqual(self.client.submit_bcs_transaction.await_count, 1)
        self.sleep.assert_not_called()

    async def test_transport_error(self):
        self.client.create_bcs_signed_transaction.side_effect = httpx.ConnectError(
            "connection refused"
        )
        with self.assertRaises(NetworkError):
            await self.submitter.submit(self.account, self.payload)

    async def test_failed_transaction(self):
        self.client.transaction_by_hash.return_value = dict(
            self.committed, success=False, vm_status="Move abort: 0x1"
        )
        result = await self.submitter.submit(self.account, self.payload)
        self.assertFalse(result.success)
        with self.assertRaises(TransactionFailed) as cm:
            result.raise_for_status()
        self.assertEqual(cm.exception.vm_status, "Move abort: 0x1")

    async def test_wait_timeout(self):
        self.client.client_config.transaction_wait_in_seconds = 0
        self.client.transaction_pending.return_value = True
        with self.assertRaises(NetworkError):
            await self.submitter.submit(self.account, self.payload)

    async def test_rate_limit_while_confirming_does_not_resubmit(self):
        self.client.transaction_pending.side_effect = [
            ApiError("Too Many Requests", 429),
            False,
        ]
        result = await self.submitter.submit(self.account, self.payload)
        self.assertTrue(result.success)
        self.client.create_bcs_signed_transaction.assert_awaited_once()
        self.client.submit_bcs_transaction.assert_awaited_once()
        self.assertEqual(self.sleep.await_args_list, [unittest.mock.call(10.0)])

    async def test_confirmation_polls_with_injected_sleep(self):
        self.client.transaction_pending.side_effect = [True, True, False]
        await self.submitter.submit(self.account, self.payload)
        self.assertEqual(
            self.sleep.await_args_list,
            [unittest.mock.call(1.0), unittest.mock.call(1.0)],
        )

    def test_retry_policy(self):
        policy = RetryPolicy()
        self.assertEqual([policy.delay(n) for n in (1, 2, 3)], [10.0, 20.0, 40.0])
