# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Create a set inside the series recorded in ``series_id.txt`` and save the new
set id to ``set_id.txt``.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import tempfile
import unittest
from typing import List, Optional

from aptos_sdk.async_client import FaucetClient, RestClient

from ..common import (
    DEFAULT_FUND_AMOUNT,
    RESOURCE_ACCOUNT_ADDRESS,
    SERIES_ID_FILE,
    SET_ID_FILE,
)
from ..context import (
    add_common_arguments,
    configure_logging,
    open_context,
    run_guarded,
)
from ..errors import ConfigError
from ..events import SetCreatedEvent, extract
from ..persist import read_identifier, write_identifier
from ..testing import mock_clients


def read_numeric_identifier(path: str, hint: str) -> int:
    value = read_identifier(path, hint)
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{path} does not hold a numeric id: {value!r}")


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Create a set in a UFC NFT series")
    parser.add_argument("--name", type=str, default="Main Event")
    parser.add_argument(
        "--description", type=str, default="UFC 291 Main Event NFT Collection"
    )
    parser.add_argument("--maximum-editions", type=int, default=100)
    parser.add_argument("--metadata-hash", type=str, default="QmHash...")
    parser.add_argument("--series-file", type=str, default=SERIES_ID_FILE)
    parser.add_argument("--output", type=str, default=SET_ID_FILE)
    add_common_arguments(parser, RESOURCE_ACCOUNT_ADDRESS)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    async def execute():
        series_id = read_numeric_identifier(
            parsed_args.series_file, "Please create a series first."
        )
        print(f"Using series ID: {series_id}")

        context = await open_context(
            parsed_args, DEFAULT_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            print("Creating set...")
            result = await context.nft_client.create_set(
                context.account,
                series_id,
                parsed_args.name,
                parsed_args.description,
                parsed_args.maximum_editions,
                parsed_args.metadata_hash,
            )
        finally:
            await context.close()

        print(f"Transaction hash: {result.hash}")
        created = extract(result.events, SetCreatedEvent)
        if created is None:
            print("No SetCreatedEvent found in transaction events")
        else:
            print(f"Set ID: {created.set_id}")
            write_identifier(parsed_args.output, created.set_id)
            print(f"Set ID saved to {parsed_args.output}")
        print("Set created successfully!")

    return await run_guarded(execute)


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    async def test_creates_set(self):
        rest_client, faucet_client = mock_clients(
            events=[
                {
                    "type": f"{RESOURCE_ACCOUNT_ADDRESS}::ufc_nft::SetCreatedEvent",
                    "data": {"series_id": "4", "set_id": "9"},
                }
            ]
        )
        with tempfile.TemporaryDirectory() as directory:
            series_file = os.path.join(directory, SERIES_ID_FILE)
            output = os.path.join(directory, SET_ID_FILE)
            write_identifier(series_file, "4")
            status = await main(
                [
                    "--series-file",
                    series_file,
                    "--output",
                    output,
                    "--private-key",
                    self.private_key,
                ],
                rest_client,
                faucet_client,
            )
            self.assertEqual(status, 0)
            self.assertEqual(read_identifier(output), "9")
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(payload.value.function, "create_set")

    async def test_missing_series_skips_network(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            status = await main(
                [
                    "--series-file",
                    os.path.join(directory, SERIES_ID_FILE),
                    "--private-key",
                    self.private_key,
                ],
                rest_client,
                faucet_client,
            )
        self.assertEqual(status, 1)
        rest_client.account.assert_not_called()
        rest_client.submit_bcs_transaction.assert_not_called()

    def test_non_numeric_series(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, SERIES_ID_FILE)
            write_identifier(path, "abc")
            with self.assertRaises(ConfigError):
                read_numeric_identifier(path, "")


if __name__ == "__main__":
    run()
