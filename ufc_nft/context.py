# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Per-run wiring shared by every script.

A :class:`ScriptContext` owns the REST client, faucet client, submitter and
signing account of one script run. It is built once by :func:`open_context`
and passed to the code that needs it; tests hand in mock clients instead of
the real ones.
"""

from __future__ import annotations

import argparse
import logging
import sys
import unittest
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from aptos_sdk.account import Account
from aptos_sdk.async_client import ClientConfig, FaucetClient, RestClient

from .account_loader import load_account
from .client import UfcNftClient
from .common import (
    API_KEY,
    CONFIG_PATH,
    CONTRACT_ADDRESS,
    FAUCET_AUTH_TOKEN,
    FAUCET_URL,
    NODE_URL,
)
from .errors import NetworkError, UfcNftError
from .funding import fund_account_if_needed
from .submitter import RetryPolicy, TransactionSubmitter
from .testing import mock_clients


def add_common_arguments(
    parser: argparse.ArgumentParser, module_address: str = CONTRACT_ADDRESS
):
    """Options understood by every script."""
    parser.add_argument(
        "--private-key",
        help="Signing key (hex, 0x-prefixed or ed25519-priv-0x); overrides --config",
        type=str,
    )
    parser.add_argument(
        "--config",
        help="Aptos CLI config holding a 'private_key:' line",
        type=str,
        default=CONFIG_PATH,
    )
    parser.add_argument(
        "--require-config",
        help="Fail instead of generating an ephemeral account when --config is unreadable",
        action="store_true",
    )
    parser.add_argument(
        "--save-generated-key",
        help="Write a generated account's key to --config for later runs",
        action="store_true",
    )
    parser.add_argument(
        "--node-url", help="Aptos REST API endpoint", type=str, default=NODE_URL
    )
    parser.add_argument(
        "--faucet-url", help="Aptos faucet endpoint", type=str, default=FAUCET_URL
    )
    parser.add_argument(
        "--module-address",
        help="Address the ufc_nft module is published at",
        type=str,
        default=module_address,
    )
    parser.add_argument(
        "--fund-amount",
        help="Faucet top-up in octas when the balance is low",
        type=int,
    )
    parser.add_argument(
        "--verbose", help="Log at DEBUG level", action="store_true"
    )


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class ScriptContext:
    rest_client: RestClient
    faucet_client: FaucetClient
    submitter: TransactionSubmitter
    nft_client: UfcNftClient
    account: Account

    async def close(self):
        # The faucet client owns the REST client's connection pool
        await self.faucet_client.close()


async def open_context(
    args: argparse.Namespace,
    fund_amount: int,
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
    retry_policy: RetryPolicy = RetryPolicy(),
) -> ScriptContext:
    """
    Load the account, connect the clients and make sure the account is funded.

    :param args: Parsed arguments of :func:`add_common_arguments`
    :param fund_amount: Default faucet top-up when ``--fund-amount`` is not given
    :param rest_client: Client to use instead of one for ``--node-url``
    :param faucet_client: Client to use instead of one for ``--faucet-url``
    :raises ConfigError: If the signing key cannot be loaded
    :raises NetworkError: If funding fails
    """
    account = load_account(
        args.private_key,
        args.config,
        allow_generate=not args.require_config,
        save_generated=args.save_generated_key,
    )
    print(f"Using account: {account.address()}")

    if rest_client is None:
        rest_client = RestClient(args.node_url, ClientConfig(api_key=API_KEY))
    if faucet_client is None:
        faucet_client = FaucetClient(args.faucet_url, rest_client, FAUCET_AUTH_TOKEN)
    submitter = TransactionSubmitter(rest_client, retry_policy)
    context = ScriptContext(
        rest_client,
        faucet_client,
        submitter,
        UfcNftClient(submitter, args.module_address),
        account,
    )

    amount = args.fund_amount if args.fund_amount is not None else fund_amount
    try:
        await fund_account_if_needed(
            rest_client, faucet_client, account.address(), amount
        )
    except BaseException:
        await context.close()
        raise
    return context


async def run_guarded(body: Callable[[], Awaitable[None]]) -> int:
    """Run a script body, mapping UfcNftError to a printed error and exit 1."""
    try:
        await body()
    except UfcNftError as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.debug("Script failed", exc_info=True)
        return 1
    return 0


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    def parse(self, *argv: str) -> argparse.Namespace:
        parser = argparse.ArgumentParser()
        add_common_arguments(parser)
        return parser.parse_args(list(argv))

    async def test_open_context_funds_low_account(self):
        rest_client, faucet_client = mock_clients(balance=0)
        args = self.parse("--private-key", self.private_key)
        context = await open_context(args, 100_000_000, rest_client, faucet_client)
        self.assertEqual(context.account, Account.load_key(self.private_key))
        faucet_client.fund_account.assert_awaited_once_with(
            context.account.address(), 100_000_000
        )
        await context.close()
        faucet_client.close.assert_awaited_once()

    async def test_fund_amount_override(self):
        rest_client, faucet_client = mock_clients(balance=0)
        args = self.parse("--private-key", self.private_key, "--fund-amount", "5")
        context = await open_context(args, 100_000_000, rest_client, faucet_client)
        faucet_client.fund_account.assert_awaited_once_with(
            context.account.address(), 5
        )

    async def test_open_context_closes_on_funding_failure(self):
        rest_client, faucet_client = mock_clients(balance=0)
        faucet_client.fund_account.side_effect = NetworkError("faucet down", 503)
        args = self.parse("--private-key", self.private_key)
        with self.assertRaises(NetworkError):
            await open_context(args, 100_000_000, rest_client, faucet_client)
        faucet_client.close.assert_awaited_once()

    async def test_run_guarded(self):
        async def fails():
            raise NetworkError("boom")

        async def succeeds():
            pass

        self.assertEqual(await run_guarded(fails), 1)
        self.assertEqual(await run_guarded(succeeds), 0)
