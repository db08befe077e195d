# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Point a minted token object at a new metadata URI.

Usage::

    python -m ufc_nft.scripts.update_token_uri <token_address> <new_uri>
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import io
import os
import sys
import tempfile
import unittest
from typing import List, Optional

from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import FaucetClient, RestClient

from ..common import UPDATE_URI_ERROR_FILE, UPDATE_URI_FUND_AMOUNT, UPDATE_URI_RESULT_FILE
from ..context import add_common_arguments, configure_logging, open_context
from ..errors import UfcNftError
from ..persist import RunTimer, read_json, write_json
from ..testing import mock_clients
from .mint_nft import address


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Update the URI of a token object")
    parser.add_argument("token_address", help="Address of the token object", type=address)
    parser.add_argument("new_uri", help="URI to assign", type=str)
    parser.add_argument("--output", type=str, default=UPDATE_URI_RESULT_FILE)
    parser.add_argument("--error-output", type=str, default=UPDATE_URI_ERROR_FILE)
    add_common_arguments(parser)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    token: AccountAddress = parsed_args.token_address
    timer = RunTimer()
    print("Update Token URI")
    print("==================")
    print(f"Started at: {timer.started_at.astimezone():%Y-%m-%d %H:%M:%S}")

    try:
        context = await open_context(
            parsed_args, UPDATE_URI_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            print("Update Details:")
            print(f"   Token Address: {token}")
            print(f"   New URI: {parsed_args.new_uri}")
            timer.mark()
            result = await context.nft_client.set_token_uri(
                context.account, token, parsed_args.new_uri
            )
        finally:
            await context.close()
    except UfcNftError as e:
        timer.stop()
        print(f"Update failed: {e}", file=sys.stderr)
        timer.report()
        summary = timer.summary()
        summary["duration"] = summary.pop("totalScriptDuration")
        write_json(
            parsed_args.error_output,
            {
                "success": False,
                "error": str(e),
                "digitalAssetAddress": str(token),
                **summary,
            },
        )
        print(f"Error details saved to: {parsed_args.error_output}")
        return 1

    timer.stop()
    print("\nUpdate Complete!")
    print("===================")
    print(f"Transaction hash: {result.hash}")
    print(f"Update transaction time: {timer.duration:.2f} seconds")
    timer.report()

    write_json(
        parsed_args.output,
        {
            "success": True,
            "transactionHash": result.hash,
            "digitalAssetAddress": str(token),
            "newUri": parsed_args.new_uri,
            **timer.summary(),
        },
    )
    print(f"\nResults saved to: {parsed_args.output}")
    return 0


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"
    token = "0xe7997c14b16417a76a50425e485810a1fb4514b773ae9cda5d30c1638902603d"

    async def invoke(self, directory: str, rest_client, faucet_client) -> int:
        argv = [
            self.token,
            "ipfs://new-uri",
            "--output",
            os.path.join(directory, "result.json"),
            "--error-output",
            os.path.join(directory, "error.json"),
            "--private-key",
            self.private_key,
        ]
        with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(
            io.StringIO()
        ):
            return await main(argv, rest_client, faucet_client)

    async def test_update(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            status = await self.invoke(directory, rest_client, faucet_client)
            result = read_json(os.path.join(directory, "result.json"))
        self.assertEqual(status, 0)
        self.assertEqual(result["newUri"], "ipfs://new-uri")
        self.assertEqual(result["digitalAssetAddress"], self.token)
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(str(payload.value.module), "0x4::aptos_token")
        self.assertEqual(payload.value.function, "set_uri")

    async def test_failure_writes_error_file(self):
        rest_client, faucet_client = mock_clients()
        rest_client.transaction_by_hash.return_value = {
            "hash": "0xabc",
            "success": False,
            "vm_status": "Move abort: ENOT_CREATOR",
            "events": [],
        }
        with tempfile.TemporaryDirectory() as directory:
            status = await self.invoke(directory, rest_client, faucet_client)
            error = read_json(os.path.join(directory, "error.json"))
            self.assertFalse(os.path.exists(os.path.join(directory, "result.json")))
        self.assertEqual(status, 1)
        self.assertIn("ENOT_CREATOR", error["error"])


if __name__ == "__main__":
    run()
