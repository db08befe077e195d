# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Faucet funding guard.

The guard is a heuristic rather than an "ensure balance >= X" contract: an
account is topped up with the full requested amount only when it does not
exist yet or holds less than a tenth of that amount. An account sitting
between a tenth and the full amount is left alone.
"""

from __future__ import annotations

import logging
import unittest
import unittest.mock
from enum import Enum

import httpx
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ApiError, FaucetClient, RestClient

from .errors import NetworkError

logger = logging.getLogger(__name__)


class FundingStatus(Enum):
    SUFFICIENT = "sufficient"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_NOT_FOUND = "account_not_found"


async def balance_status(
    rest_client: RestClient, address: AccountAddress, amount: int
) -> FundingStatus:
    """
    Classify an account's balance against a requested top-up amount.

    :param rest_client: Client for the node the account lives on
    :param address: Account to inspect
    :param amount: Requested top-up amount in octas
    :return: ACCOUNT_NOT_FOUND if the node has no such account,
        INSUFFICIENT_FUNDS if the balance is below amount / 10, else SUFFICIENT
    :raises NetworkError: If the node query fails for any other reason
    """
    try:
        await rest_client.account(address)
    except ApiError as e:
        if e.status_code == 404:
            return FundingStatus.ACCOUNT_NOT_FOUND
        raise NetworkError(f"Account lookup for {address} failed: {e}", e.status_code)
    except httpx.HTTPError as e:
        raise NetworkError(f"Account lookup for {address} failed: {e}")

    try:
        balance = await rest_client.account_balance(address)
    except ApiError as e:
        raise NetworkError(f"Balance query for {address} failed: {e}", e.status_code)
    except httpx.HTTPError as e:
        raise NetworkError(f"Balance query for {address} failed: {e}")

    logger.debug("Balance of %s is %d octas", address, balance)
    if balance < amount / 10:
        return FundingStatus.INSUFFICIENT_FUNDS
    return FundingStatus.SUFFICIENT


async def fund_account_if_needed(
    rest_client: RestClient,
    faucet_client: FaucetClient,
    address: AccountAddress,
    amount: int,
) -> FundingStatus:
    """
    Request exactly one faucet top-up of ``amount`` unless the account is
    already sufficiently funded.

    :return: The status observed before any top-up
    :raises NetworkError: If the balance query or the faucet request fails
    """
    print(f"Funding account {address} if needed...")
    status = await balance_status(rest_client, address, amount)
    if status == FundingStatus.SUFFICIENT:
        print("Account already has sufficient funds")
        return status

    logger.info("Funding %s with %d octas (%s)", address, amount, status.value)
    try:
        await faucet_client.fund_account(address, amount)
    except ApiError as e:
        raise NetworkError(f"Faucet request for {address} failed: {e}", e.status_code)
    except httpx.HTTPError as e:
        raise NetworkError(f"Faucet request for {address} failed: {e}")
    print(f"Account funded with {amount} Octas")
    return status


class Test(unittest.IsolatedAsyncioTestCase):
    address = AccountAddress.from_str_relaxed("0xf")

    def clients(self, balance=0, account_error=None):
        rest_client = unittest.mock.MagicMock()
        rest_client.account = unittest.mock.AsyncMock(
            return_value={"sequence_number": "0"}, side_effect=account_error
        )
        rest_client.account_balance = unittest.mock.AsyncMock(return_value=balance)
        faucet_client = unittest.mock.MagicMock()
        faucet_client.fund_account = unittest.mock.AsyncMock(return_value="0x1")
        return rest_client, faucet_client

    async def test_sufficient_balance(self):
        rest_client, faucet_client = self.clients(balance=10_000_000)
        status = await fund_account_if_needed(
            rest_client, faucet_client, self.address, 100_000_000
        )
        self.assertEqual(status, FundingStatus.SUFFICIENT)
        faucet_client.fund_account.assert_not_called()

    async def test_insufficient_balance(self):
        rest_client, faucet_client = self.clients(balance=9_999_999)
        status = await fund_account_if_needed(
            rest_client, faucet_client, self.address, 100_000_000
        )
        self.assertEqual(status, FundingStatus.INSUFFICIENT_FUNDS)
        faucet_client.fund_account.assert_awaited_once_with(self.address, 100_000_000)

    async def test_account_not_found(self):
        rest_client, faucet_client = self.clients(
            account_error=ApiError("account_not_found", 404)
        )
        status = await fund_account_if_needed(
            rest_client, faucet_client, self.address, 100_000_000
        )
        self.assertEqual(status, FundingStatus.ACCOUNT_NOT_FOUND)
        rest_client.account_balance.assert_not_called()
        faucet_client.fund_account.assert_awaited_once_with(self.address, 100_000_000)

    async def test_node_failure(self):
        rest_client, faucet_client = self.clients(
            account_error=ApiError("internal error", 500)
        )
        with self.assertRaises(NetworkError):
            await balance_status(rest_client, self.address, 100_000_000)

    async def test_faucet_failure(self):
        rest_client, faucet_client = self.clients(balance=0)
        faucet_client.fund_account.side_effect = ApiError("faucet down", 503)
        with self.assertRaises(NetworkError) as cm:
            await fund_account_if_needed(
                rest_client, faucet_client, self.address, 100_000_000
            )
        self.assertEqual(cm.exception.status_code, 503)
