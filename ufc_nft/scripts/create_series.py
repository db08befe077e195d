# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Create a series and save its id to ``series_id.txt`` for ``create_set``.
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

from ..common import DEFAULT_FUND_AMOUNT, RESOURCE_ACCOUNT_ADDRESS, SERIES_ID_FILE
from ..context import (
    add_common_arguments,
    configure_logging,
    open_context,
    run_guarded,
)
from ..events import SeriesCreatedEvent, extract
from ..persist import read_identifier, write_identifier
from ..testing import mock_clients


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Create a UFC NFT series")
    parser.add_argument("--name", type=str, default="UFC Series 1")
    parser.add_argument("--description", type=str, default="First series of UFC NFTs")
    parser.add_argument("--uri", type=str, default="https://ufc.com/series1")
    parser.add_argument("--max-supply", type=int, default=10000)
    parser.add_argument("--royalty", type=int, default=100)
    parser.add_argument(
        "--metadata-uri", type=str, default="https://ufc.com/series1/metadata"
    )
    parser.add_argument(
        "--output", help="Where to save the series id", type=str, default=SERIES_ID_FILE
    )
    add_common_arguments(parser, RESOURCE_ACCOUNT_ADDRESS)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    async def execute():
        context = await open_context(
            parsed_args, DEFAULT_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            print("Creating series...")
            result = await context.nft_client.create_series(
                context.account,
                parsed_args.name,
                parsed_args.description,
                parsed_args.uri,
                parsed_args.max_supply,
                parsed_args.royalty,
                parsed_args.metadata_uri,
            )
        finally:
            await context.close()

        print(f"Transaction hash: {result.hash}")
        print(f"Events found in transaction: {len(result.events)}")
        for event in result.events:
            print(f"  {event.type}")

        series = extract(result.events, SeriesCreatedEvent)
        if series is None:
            print("No SeriesCreatedEvent found in transaction events")
        else:
            print(f"Series ID: {series.series_id}")
            write_identifier(parsed_args.output, series.series_id)
            print(f"Series ID saved to {parsed_args.output}")
        print("Series created successfully!")

    return await run_guarded(execute)


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    async def test_saves_series_id(self):
        rest_client, faucet_client = mock_clients(
            events=[
                {
                    "type": f"{RESOURCE_ACCOUNT_ADDRESS}::ufc_nft::SeriesCreatedEvent",
                    "data": {"series_id": "4", "name": "UFC Series 1"},
                }
            ]
        )
        with tempfile.TemporaryDirectory() as directory:
            output = os.path.join(directory, SERIES_ID_FILE)
            status = await main(
                ["--output", output, "--private-key", self.private_key],
                rest_client,
                faucet_client,
            )
            self.assertEqual(status, 0)
            self.assertEqual(read_identifier(output), "4")
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(payload.value.function, "create_series")

    async def test_missing_event(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            output = os.path.join(directory, SERIES_ID_FILE)
            status = await main(
                ["--output", output, "--private-key", self.private_key],
                rest_client,
                faucet_client,
            )
            self.assertEqual(status, 0)
            self.assertFalse(os.path.exists(output))


if __name__ == "__main__":
    run()
