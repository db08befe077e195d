# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Mint a batch of tokens in one ``batch_mint_simple_for`` transaction.

The batch is read from a JSON document::

    {
      "batchMintData": [
        {"collection": "UFC Fighters #1", "recipient": "0xb51f...", "uri": "ipfs://..."},
        ...
      ]
    }

The document is loaded and validated before the account is loaded or funded.
On success ``batch-mint-results.json`` records the transaction and the three
argument vectors; on failure ``batch-mint-error.json`` records the error and
the exit status is 1.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import io
import json
import os
import sys
import tempfile
import unittest
from typing import Any, Dict, List, NamedTuple, Optional

from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import FaucetClient, RestClient

from ..common import (
    BATCH_MINT_DATA_FILE,
    BATCH_MINT_ERROR_FILE,
    BATCH_MINT_FUND_AMOUNT,
    BATCH_MINT_RESULTS_FILE,
)
from ..context import add_common_arguments, configure_logging, open_context
from ..errors import ConfigError, UfcNftError
from ..events import TokenMintEvent, extract_all
from ..persist import RunTimer, read_json, write_json
from ..testing import mock_clients

SAMPLE_SIZE = 5


class BatchMintItem(NamedTuple):
    collection: str
    recipient: AccountAddress
    uri: str

    @staticmethod
    def parse(item: Dict[str, Any]) -> BatchMintItem:
        try:
            recipient = AccountAddress.from_str_relaxed(item["recipient"])
            return BatchMintItem(item["collection"], recipient, item["uri"])
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Malformed batch mint item {item!r}: {e}") from e
        except (RuntimeError, ValueError) as e:
            raise ConfigError(f"Invalid recipient in {item!r}: {e}") from e


def load_batch_mint_data(path: str, expected: Optional[int] = None) -> List[BatchMintItem]:
    """
    Load and validate a batch mint document.

    :param path: JSON file with a ``batchMintData`` list
    :param expected: Required number of items, or None to accept any non-empty batch
    :raises ConfigError: If the file is missing, malformed or the wrong size
    """
    document = read_json(path)
    try:
        raw_items = document["batchMintData"]
    except (KeyError, TypeError) as e:
        raise ConfigError(f"{path} has no batchMintData list") from e
    if not isinstance(raw_items, list):
        raise ConfigError(f"{path}: batchMintData must be a list")
    items = [BatchMintItem.parse(item) for item in raw_items]
    if not items:
        raise ConfigError(f"{path}: batchMintData is empty")
    if expected is not None and len(items) != expected:
        raise ConfigError(f"Expected {expected} items, got {len(items)}")
    return items


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Batch mint UFC NFTs")
    parser.add_argument("--data", type=str, default=BATCH_MINT_DATA_FILE)
    parser.add_argument(
        "--expected",
        help="Required number of items; 0 accepts any size",
        type=int,
        default=50,
    )
    parser.add_argument("--output", type=str, default=BATCH_MINT_RESULTS_FILE)
    parser.add_argument("--error-output", type=str, default=BATCH_MINT_ERROR_FILE)
    add_common_arguments(parser)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    timer = RunTimer()
    print("Batch Minting UFC NFTs...")
    print("==================================")
    print(f"Script started at: {timer.started_at.astimezone():%Y-%m-%d %H:%M:%S}")

    try:
        print(f"Loading batch mint data from {parsed_args.data}...")
        items = load_batch_mint_data(parsed_args.data, parsed_args.expected or None)
        collections = [item.collection for item in items]
        recipients = [item.recipient for item in items]
        uris = [item.uri for item in items]

        print("Batch mint summary:")
        print(f"   Items: {len(items)}")
        print(f"   Unique collections: {len(set(collections))}")
        print(f"   Unique recipients: {len(set(str(r) for r in recipients))}")

        context = await open_context(
            parsed_args, BATCH_MINT_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            timer.mark()
            print("\nStarting batch mint transaction...")
            result = await context.nft_client.batch_mint_simple_for(
                context.account, collections, recipients, uris
            )
        finally:
            await context.close()
    except UfcNftError as e:
        timer.stop()
        print(f"Batch mint failed: {e}", file=sys.stderr)
        timer.report()
        summary = timer.summary()
        del summary["duration"]
        write_json(parsed_args.error_output, {"success": False, "error": str(e), **summary})
        print(f"Error details saved to: {parsed_args.error_output}")
        return 1

    tokens = [minted.token for minted in extract_all(result.events, TokenMintEvent)]
    timer.stop()
    print("\nBatch Mint Complete!")
    print("========================")
    print(f"Successfully minted: {len(items)} NFTs")
    print(f"Token objects reported by the chain: {len(tokens)}")
    print(f"Transaction hash: {result.hash}")
    print(f"Batch mint transaction time: {timer.duration:.2f} seconds")
    print(f"Average: {timer.duration / len(items):.3f} seconds per NFT")
    timer.report()

    write_json(
        parsed_args.output,
        {
            "success": True,
            "transactionHash": result.hash,
            "mintedTokens": len(items),
            "tokenAddresses": tokens,
            **timer.summary(),
            "collections": collections,
            "recipients": [str(r) for r in recipients],
            "uris": uris,
        },
    )
    print(f"\nResults saved to: {parsed_args.output}")

    print("\nSample minted tokens:")
    for i, item in enumerate(items[:SAMPLE_SIZE]):
        print(f"   Token {i + 1}: {item.collection} -> {str(item.recipient)[:10]}...")
    if len(items) > SAMPLE_SIZE:
        print(f"   ... and {len(items) - SAMPLE_SIZE} more tokens")
    return 0


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    def write_data(self, directory: str, count: int) -> str:
        path = os.path.join(directory, "batch.json")
        items = [
            {
                "collection": f"UFC Fighters #{i % 3 + 1}",
                "recipient": "0xb51f2b3cdaf5fbe19532e245052261cf9aa242acacc73e1dfa79cb8cda44e75c",
                "uri": f"ipfs://token-{i}",
            }
            for i in range(count)
        ]
        with open(path, "w") as f:
            json.dump({"batchMintData": items}, f)
        return path

    async def invoke(self, directory: str, rest_client, faucet_client, *extra: str):
        argv = [
            "--output",
            os.path.join(directory, "results.json"),
            "--error-output",
            os.path.join(directory, "error.json"),
            "--private-key",
            self.private_key,
        ] + list(extra)
        with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(
            io.StringIO()
        ):
            return await main(argv, rest_client, faucet_client)

    async def test_batch_mint(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            data = self.write_data(directory, 6)
            status = await self.invoke(
                directory, rest_client, faucet_client, "--data", data, "--expected", "6"
            )
            results = read_json(os.path.join(directory, "results.json"))
        self.assertEqual(status, 0)
        self.assertTrue(results["success"])
        self.assertEqual(results["mintedTokens"], 6)
        self.assertEqual(results["transactionHash"], "0xabc")
        self.assertEqual(len(results["uris"]), 6)
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(payload.value.function, "batch_mint_simple_for")

    async def test_wrong_size_skips_network(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            data = self.write_data(directory, 4)
            status = await self.invoke(directory, rest_client, faucet_client, "--data", data)
            error = read_json(os.path.join(directory, "error.json"))
        self.assertEqual(status, 1)
        self.assertFalse(error["success"])
        self.assertEqual(error["error"], "Expected 50 items, got 4")
        rest_client.account.assert_not_called()
        faucet_client.fund_account.assert_not_called()

    def test_invalid_recipient(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "batch.json")
            with open(path, "w") as f:
                json.dump(
                    {"batchMintData": [{"collection": "A", "recipient": "zz", "uri": "u"}]},
                    f,
                )
            with self.assertRaises(ConfigError):
                load_batch_mint_data(path)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_batch_mint_data("/nonexistent/batch.json")


if __name__ == "__main__":
    run()
