# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Mint one edition of the set in ``set_id.txt`` and attach its metadata.

Both ``series_id.txt`` and ``set_id.txt`` must exist. The mint and the
metadata update are two transactions; the second is only sent when the first
emitted an ``NFTMintedEvent`` carrying the new NFT id.
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
from ..events import NftMintedEvent, extract, find_event
from ..persist import write_identifier
from ..testing import mock_clients
from .create_set import read_numeric_identifier

DEFAULT_ATTRIBUTES = ["Fighter: Dustin Poirier", "Event: UFC 291"]


def address(indata: str) -> AccountAddress:
    try:
        return AccountAddress.from_str_relaxed(indata)
    except (RuntimeError, ValueError) as e:
        raise argparse.ArgumentTypeError(f"Invalid account address {indata}: {e}")


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Mint a UFC NFT edition")
    parser.add_argument(
        "--recipient", help="Defaults to the signing account", type=address
    )
    parser.add_argument("--edition", type=int, default=1)
    parser.add_argument(
        "--attribute",
        help="Metadata attribute (repeatable)",
        type=str,
        action="append",
    )
    parser.add_argument("--media-type", type=str, default="image/jpeg")
    parser.add_argument(
        "--media-url", type=str, default="https://ufc.com/nft/dustin-poirier.jpg"
    )
    parser.add_argument("--series-file", type=str, default=SERIES_ID_FILE)
    parser.add_argument("--set-file", type=str, default=SET_ID_FILE)
    add_common_arguments(parser, RESOURCE_ACCOUNT_ADDRESS)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)
    attributes = parsed_args.attribute or DEFAULT_ATTRIBUTES

    async def execute():
        if parsed_args.edition < 1:
            raise ConfigError(f"Edition numbers start at 1, got {parsed_args.edition}")
        series_id = read_numeric_identifier(
            parsed_args.series_file, "Please create a series first."
        )
        set_id = read_numeric_identifier(
            parsed_args.set_file, "Please create a set first."
        )
        print(f"Using series ID: {series_id}, set ID: {set_id}")

        context = await open_context(
            parsed_args, DEFAULT_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            recipient = parsed_args.recipient or context.account.address()
            print(f"Minting edition {parsed_args.edition} to {recipient}...")
            result = await context.nft_client.mint_nft(
                context.account, recipient, series_id, set_id, parsed_args.edition
            )
            print(f"Transaction hash: {result.hash}")

            minted = extract(result.events, NftMintedEvent)
            if minted is None:
                data = find_event(result.events, NftMintedEvent.event_type)
                if data is not None:
                    raise ConfigError(
                        f"NFTMintedEvent in {result.hash} has no numeric nft_id: {data}"
                    )
                print("No NFTMintedEvent found in transaction events")
                return
            print(f"NFT ID: {minted.nft_id}")

            print("Adding metadata...")
            metadata = await context.nft_client.add_metadata(
                context.account,
                minted.nft_id,
                attributes,
                parsed_args.media_type,
                parsed_args.media_url,
            )
        finally:
            await context.close()

        print(f"Metadata transaction hash: {metadata.hash}")
        print("NFT minted successfully!")

    return await run_guarded(execute)


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    async def invoke(self, directory: str, rest_client, faucet_client, *extra: str):
        series_file = os.path.join(directory, SERIES_ID_FILE)
        set_file = os.path.join(directory, SET_ID_FILE)
        argv = [
            "--series-file",
            series_file,
            "--set-file",
            set_file,
            "--private-key",
            self.private_key,
        ]
        with contextlib.redirect_stdout(io.StringIO()):
            return await main(argv + list(extra), rest_client, faucet_client)

    async def test_mint_and_add_metadata(self):
        rest_client, faucet_client = mock_clients(
            events=[
                {
                    "type": f"{RESOURCE_ACCOUNT_ADDRESS}::ufc_nft::NFTMintedEvent",
                    "data": {"nft_id": "17", "edition_number": "1"},
                }
            ]
        )
        with tempfile.TemporaryDirectory() as directory:
            write_identifier(os.path.join(directory, SERIES_ID_FILE), "4")
            write_identifier(os.path.join(directory, SET_ID_FILE), "9")
            status = await self.invoke(
                directory, rest_client, faucet_client, "--attribute", "Fighter: X"
            )
        self.assertEqual(status, 0)
        calls = rest_client.create_bcs_signed_transaction.await_args_list
        self.assertEqual(len(calls), 2)
        self.assertEqual(calls[0].args[1].value.function, "mint_nft")
        self.assertEqual(calls[1].args[1].value.function, "add_metadata")

    async def test_no_minted_event_skips_metadata(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            write_identifier(os.path.join(directory, SERIES_ID_FILE), "4")
            write_identifier(os.path.join(directory, SET_ID_FILE), "9")
            status = await self.invoke(directory, rest_client, faucet_client)
        self.assertEqual(status, 0)
        rest_client.create_bcs_signed_transaction.assert_awaited_once()

    async def test_non_numeric_nft_id_fails(self):
        rest_client, faucet_client = mock_clients(
            events=[
                {
                    "type": f"{RESOURCE_ACCOUNT_ADDRESS}::ufc_nft::NFTMintedEvent",
                    "data": {"nft_id": "0xdeadbeef"},
                }
            ]
        )
        with tempfile.TemporaryDirectory() as directory:
            write_identifier(os.path.join(directory, SERIES_ID_FILE), "4")
            write_identifier(os.path.join(directory, SET_ID_FILE), "9")
            with contextlib.redirect_stderr(io.StringIO()) as errors:
                status = await self.invoke(directory, rest_client, faucet_client)
        self.assertEqual(status, 1)
        self.assertIn("no numeric nft_id", errors.getvalue())
        rest_client.create_bcs_signed_transaction.assert_awaited_once()

    async def test_missing_set_skips_network(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            write_identifier(os.path.join(directory, SERIES_ID_FILE), "4")
            status = await self.invoke(directory, rest_client, faucet_client)
        self.assertEqual(status, 1)
        rest_client.account.assert_not_called()


if __name__ == "__main__":
    run()
