# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
``ufc-nft``: create collections and mint tokens with the ``ufc_nft`` module.

Supported Commands:
    create-collection <name> <uri> <description> <maximum>
    mint <tokenId> <collection> <name> <uri> <description> <fighterName>
        <weightClass> <record> <ranking>
    mint-for <recipient> <tokenId> <collection> <name> <uri> <description>
        <fighterName> <weightClass> <record> <ranking>
    batch-mint <collections_csv> <uris_csv>
    batch-mint-for <collections_csv> <recipients_csv> <uris_csv>

Arguments are validated before anything touches the network: a command with
too few arguments prints the usage and exits 0, malformed numbers, addresses
or mismatched CSV lists exit 1. After that the account is loaded and funded
and a single transaction is submitted.

Examples::

    python -m ufc_nft.cli create-collection "UFC Collection" \\
        "https://ufc.com/collection" "The official UFC NFT collection" 10000

    python -m ufc_nft.cli batch-mint-for "UFC Fighters #1,UFC Fighters #2" \\
        "0xb51f...,0xb51f..." "ipfs://a,ipfs://b"
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import io
import sys
import unittest
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import FaucetClient, RestClient

from .common import DEFAULT_FUND_AMOUNT
from .context import (
    add_common_arguments,
    configure_logging,
    open_context,
    run_guarded,
)
from .events import TokenMintEvent, extract_all
from .testing import mock_clients

USAGE = """
Usage:
    ufc-nft create-collection <name> <uri> <description> <maximum>
    ufc-nft mint <tokenId> <collection> <name> <uri> <description> <fighterName> <weightClass> <record> <ranking>
    ufc-nft mint-for <recipient> <tokenId> <collection> <name> <uri> <description> <fighterName> <weightClass> <record> <ranking>
    ufc-nft batch-mint <collections_csv> <uris_csv>
    ufc-nft batch-mint-for <collections_csv> <recipients_csv> <uris_csv>

Examples:
    ufc-nft create-collection "UFC Collection" "https://ufc.com/collection" "The official UFC NFT collection" 10000
    ufc-nft mint 1 "UFC Collection" "Jon Jones" "https://ufc.com/nft/jon-jones" "UFC Heavyweight Champion Jon Jones" "Jon Jones" "Heavyweight" "27-1-0" 1
    ufc-nft mint-for 0xb51f2b3cdaf5fbe19532e245052261cf9aa242acacc73e1dfa79cb8cda44e75c 2 "UFC Collection" "Conor McGregor" "https://ufc.com/nft/conor-mcgregor" "UFC Champion Conor McGregor" "Conor McGregor" "Lightweight" "22-6-0" 5
    ufc-nft batch-mint "UFC Collection,UFC Collection" "https://ufc.com/nft/1,https://ufc.com/nft/2"
"""


def print_usage():
    print(USAGE)


def parse_int(name: str, value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if number < 0:
        raise ValueError(f"{name} must not be negative, got {number}")
    return number


def parse_address(name: str, value: str) -> AccountAddress:
    try:
        return AccountAddress.from_str_relaxed(value.strip())
    except (RuntimeError, ValueError) as e:
        raise ValueError(f"{name} is not a valid account address: {value!r} ({e})")


def parse_csv(value: str) -> List[str]:
    if not value.strip():
        return []
    return [item.strip() for item in value.split(",")]


def check_lengths(**columns: List[Any]):
    lengths = {name: len(values) for name, values in columns.items()}
    if 0 in lengths.values():
        raise ValueError("Batch lists must not be empty")
    if len(set(lengths.values())) != 1:
        detail = ", ".join(f"{name}={length}" for name, length in lengths.items())
        raise ValueError(f"Batch lists must have the same length ({detail})")


def _prepare_create_collection(params: List[str]) -> Dict[str, Any]:
    return {
        "name": params[0],
        "uri": params[1],
        "description": params[2],
        "maximum": parse_int("maximum", params[3]),
    }


def _prepare_mint(params: List[str]) -> Dict[str, Any]:
    return {
        "token_id": parse_int("tokenId", params[0]),
        "collection": params[1],
        "name": params[2],
        "uri": params[3],
        "description": params[4],
        "fighter_name": params[5],
        "weight_class": params[6],
        "record": params[7],
        "ranking": parse_int("ranking", params[8]),
    }


def _prepare_mint_for(params: List[str]) -> Dict[str, Any]:
    prepared = {"recipient": parse_address("recipient", params[0])}
    prepared.update(_prepare_mint(params[1:]))
    return prepared


def _prepare_batch_mint(params: List[str]) -> Dict[str, Any]:
    collections = parse_csv(params[0])
    uris = parse_csv(params[1])
    check_lengths(collections=collections, uris=uris)
    return {"collections": collections, "uris": uris}


def _prepare_batch_mint_for(params: List[str]) -> Dict[str, Any]:
    collections = parse_csv(params[0])
    recipients = parse_csv(params[1])
    uris = parse_csv(params[2])
    check_lengths(collections=collections, recipients=recipients, uris=uris)
    return {
        "collections": collections,
        "recipients": [parse_address("recipient", r) for r in recipients],
        "uris": uris,
    }


class Command(NamedTuple):
    params: Tuple[str, ...]
    prepare: Callable[[List[str]], Dict[str, Any]]
    method: str


_TOKEN_PARAMS = (
    "tokenId",
    "collection",
    "name",
    "uri",
    "description",
    "fighterName",
    "weightClass",
    "record",
    "ranking",
)

COMMANDS: Dict[str, Command] = {
    "create-collection": Command(
        ("name", "uri", "description", "maximum"),
        _prepare_create_collection,
        "create_collection",
    ),
    "mint": Command(_TOKEN_PARAMS, _prepare_mint, "mint_token"),
    "mint-for": Command(("recipient",) + _TOKEN_PARAMS, _prepare_mint_for, "mint_token_for"),
    "batch-mint": Command(
        ("collections_csv", "uris_csv"), _prepare_batch_mint, "batch_mint_simple"
    ),
    "batch-mint-for": Command(
        ("collections_csv", "recipients_csv", "uris_csv"),
        _prepare_batch_mint_for,
        "batch_mint_simple_for",
    ),
}


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    """Entry point of ``ufc-nft``; returns the process exit status.

    :param args: Command-line arguments, typically ``sys.argv[1:]``
    :param rest_client: Client to use instead of one for ``--node-url``
    :param faucet_client: Client to use instead of one for ``--faucet-url``
    """
    parser = argparse.ArgumentParser(description="UFC NFT management")
    parser.add_argument("command", help="The command to execute", nargs="?")
    parser.add_argument("params", help="Command arguments", nargs="*")
    add_common_arguments(parser)
    parsed_args = parser.parse_intermixed_args(args)
    configure_logging(parsed_args.verbose)

    print("UFC NFT Management Script")
    print("=========================")

    if parsed_args.command is None:
        print_usage()
        return 0

    command = COMMANDS.get(parsed_args.command)
    if command is None:
        print(f"Unknown command: {parsed_args.command}", file=sys.stderr)
        print_usage()
        return 1

    if len(parsed_args.params) < len(command.params):
        print(f"Missing parameters for {parsed_args.command}", file=sys.stderr)
        print_usage()
        return 0

    try:
        kwargs = command.prepare(parsed_args.params)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    async def execute():
        context = await open_context(
            parsed_args, DEFAULT_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            operation = getattr(context.nft_client, command.method)
            result = await operation(context.account, **kwargs)
        finally:
            await context.close()
        print(f"Transaction hash: {result.hash}")
        for minted in extract_all(result.events, TokenMintEvent):
            print(f"Minted token: {minted.token}")
        print("Operation completed successfully!")

    return await run_guarded(execute)


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    async def invoke(self, *argv: str, **client_options):
        rest_client, faucet_client = mock_clients(**client_options)
        output = io.StringIO()
        errors = io.StringIO()
        with contextlib.redirect_stdout(output), contextlib.redirect_stderr(errors):
            status = await main(
                list(argv) + ["--private-key", self.private_key],
                rest_client,
                faucet_client,
            )
        return status, output.getvalue(), errors.getvalue(), rest_client, faucet_client

    async def test_create_collection(self):
        status, output, _, rest_client, _ = await self.invoke(
            "create-collection", "UFC Collection", "https://ufc.com/c", "desc", "10000"
        )
        self.assertEqual(status, 0)
        self.assertIn("Transaction hash: 0xabc", output)
        rest_client.submit_bcs_transaction.assert_awaited_once()

    async def test_mint_for(self):
        status, _, _, rest_client, _ = await self.invoke(
            "mint-for",
            "0xb51f2b3cdaf5fbe19532e245052261cf9aa242acacc73e1dfa79cb8cda44e75c",
            "2",
            "UFC Collection",
            "Conor McGregor",
            "https://ufc.com/nft/conor-mcgregor",
            "UFC Champion Conor McGregor",
            "Conor McGregor",
            "Lightweight",
            "22-6-0",
            "5",
        )
        self.assertEqual(status, 0)
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(payload.value.function, "mint_token_for")

    async def test_mint_prints_token_address(self):
        status, output, _, _, _ = await self.invoke(
            "mint",
            "1",
            "UFC Collection",
            "Jon Jones",
            "https://ufc.com/nft/jon-jones",
            "UFC Heavyweight Champion Jon Jones",
            "Jon Jones",
            "Heavyweight",
            "27-1-0",
            "1",
            events=[
                {
                    "type": "0x4::collection::Mint",
                    "data": {"collection": "0x9", "index": {"value": "1"}, "token": "0x77"},
                }
            ],
        )
        self.assertEqual(status, 0)
        self.assertIn("Minted token: 0x77", output)

    async def test_batch_mint_length_mismatch(self):
        status, _, errors, rest_client, faucet_client = await self.invoke(
            "batch-mint", "A,B", "uri1"
        )
        self.assertEqual(status, 1)
        self.assertIn("same length", errors)
        rest_client.account.assert_not_called()
        rest_client.submit_bcs_transaction.assert_not_called()
        faucet_client.fund_account.assert_not_called()

    async def test_batch_mint_for(self):
        status, _, _, rest_client, _ = await self.invoke(
            "batch-mint-for", "A,B", "0x1,0x2", "uri1,uri2"
        )
        self.assertEqual(status, 0)
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(payload.value.function, "batch_mint_simple_for")

    async def test_missing_parameters(self):
        status, output, errors, rest_client, _ = await self.invoke("mint", "1")
        self.assertEqual(status, 0)
        self.assertIn("Missing parameters for mint", errors)
        self.assertIn("Usage:", output)
        rest_client.account.assert_not_called()

    async def test_unknown_command(self):
        status, output, errors, _, _ = await self.invoke("burn")
        self.assertEqual(status, 1)
        self.assertIn("Unknown command: burn", errors)
        self.assertIn("Usage:", output)

    async def test_bad_integer(self):
        status, _, errors, rest_client, _ = await self.invoke(
            "create-collection", "UFC", "uri", "desc", "lots"
        )
        self.assertEqual(status, 1)
        self.assertIn("maximum must be an integer", errors)
        rest_client.account.assert_not_called()

    async def test_transaction_failure(self):
        rest_client, faucet_client = mock_clients()
        rest_client.transaction_by_hash.return_value = {
            "hash": "0xabc",
            "success": False,
            "vm_status": "Move abort: ECOLLECTION_EXISTS",
            "events": [],
        }
        errors = io.StringIO()
        with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(
            errors
        ):
            status = await main(
                [
                    "create-collection",
                    "UFC",
                    "uri",
                    "desc",
                    "10",
                    "--private-key",
                    self.private_key,
                ],
                rest_client,
                faucet_client,
            )
        self.assertEqual(status, 1)
        self.assertIn("ECOLLECTION_EXISTS", errors.getvalue())


if __name__ == "__main__":
    run()
