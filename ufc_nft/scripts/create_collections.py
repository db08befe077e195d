# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Create a run of numbered collections, one transaction each.

Collections are created sequentially with a jittered pause between them to
stay under the fullnode rate limit. A failed collection is recorded and the
run moves on; the per-collection outcome and timing are written to
``collection-creation-results.json``. The exit status is 1 when any
collection failed.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import io
import json
import logging
import os
import random
import sys
import tempfile
import unittest
from typing import Any, Dict, List, Optional

from aptos_sdk.async_client import ApiError, FaucetClient, RestClient

from ..common import COLLECTIONS_FUND_AMOUNT, COLLECTION_RESULTS_FILE
from ..context import (
    add_common_arguments,
    configure_logging,
    open_context,
    run_guarded,
)
from ..errors import UfcNftError
from ..persist import RunTimer, write_json
from ..testing import mock_clients

logger = logging.getLogger(__name__)

NAME_TEMPLATE = "UFC Fighters #{i}"
URI_TEMPLATE = "https://ipfs.io/ipfs/collection-metadata-{i}"
DESCRIPTION_TEMPLATE = (
    "Official UFC Fighters Collection #{i} - Featuring legendary fighters and champions"
)
PROGRESS_INTERVAL = 5


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Create numbered UFC collections")
    parser.add_argument("--count", type=int, default=50)
    parser.add_argument("--maximum", help="Token supply per collection", type=int, default=1000)
    parser.add_argument("--name-template", type=str, default=NAME_TEMPLATE)
    parser.add_argument("--uri-template", type=str, default=URI_TEMPLATE)
    parser.add_argument("--description-template", type=str, default=DESCRIPTION_TEMPLATE)
    parser.add_argument(
        "--base-delay",
        help="Seconds to wait between collections",
        type=float,
        default=8.0,
    )
    parser.add_argument(
        "--jitter",
        help="Up to this many extra seconds are added to each wait",
        type=float,
        default=2.0,
    )
    parser.add_argument(
        "--error-delay",
        help="Seconds to wait after a failed collection",
        type=float,
        default=5.0,
    )
    parser.add_argument("--output", type=str, default=COLLECTION_RESULTS_FILE)
    add_common_arguments(parser)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    timer = RunTimer()
    count = parsed_args.count
    print(f"Creating {count} UFC Collections...")
    print("===================================")
    print(f"Script started at: {timer.started_at.astimezone():%Y-%m-%d %H:%M:%S}")
    print("Note: Using longer delays to avoid rate limits")

    results: List[Dict[str, Any]] = []

    async def execute():
        context = await open_context(
            parsed_args, COLLECTIONS_FUND_AMOUNT, rest_client, faucet_client
        )
        timer.mark()
        try:
            for i in range(1, count + 1):
                name = parsed_args.name_template.format(i=i)
                last = i == count
                try:
                    result = await context.nft_client.create_collection(
                        context.account,
                        name,
                        parsed_args.uri_template.format(i=i),
                        parsed_args.description_template.format(i=i),
                        parsed_args.maximum,
                        True,
                    )
                except UfcNftError as e:
                    logger.error("Failed to create collection #%d: %s", i, e)
                    print(f"Failed to create collection #{i}: {e}", file=sys.stderr)
                    results.append({"name": name, "hash": "", "error": str(e)})
                    if not last:
                        print(
                            f"Waiting {parsed_args.error_delay}s before continuing after error..."
                        )
                        await asyncio.sleep(parsed_args.error_delay)
                    continue

                print(f'Collection "{name}" created! Hash: {result.hash}')
                results.append({"name": name, "hash": result.hash})
                if i % PROGRESS_INTERVAL == 0:
                    print(f"Progress: {i}/{count} collections created")
                if not last:
                    delay = parsed_args.base_delay + random.uniform(
                        0, parsed_args.jitter
                    )
                    print(f"Waiting {delay:.1f}s before next collection...")
                    await asyncio.sleep(delay)
        finally:
            await context.close()

    status = await run_guarded(execute)
    timer.stop()
    if status != 0:
        return status

    failed = [r for r in results if "error" in r]
    successful = len(results) - len(failed)
    print("\nCollection Creation Complete!")
    print("================================")
    print(f"Successful: {successful}/{count}")
    print(f"Failed: {len(failed)}/{count}")
    print(f"Collections creation time: {timer.duration:.2f} seconds")
    if successful:
        print(
            f"Average: {timer.duration / successful:.2f} seconds per successful collection"
        )
    timer.report()

    summary = timer.summary()
    del summary["timestamp"]
    write_json(
        parsed_args.output,
        {
            "summary": {
                "total": count,
                "successful": successful,
                "failed": len(failed),
                **summary,
            },
            "collections": results,
        },
    )
    print(f"\nResults saved to: {parsed_args.output}")

    if failed:
        print("\nFailed collections:")
        for r in failed:
            print(f"   {r['name']}: {r['error']}")
        print("\nTips to reduce failures:")
        print("   1. Set APTOS_API_KEY for higher rate limits")
        print("   2. Run in smaller batches with --count")
        return 1
    return 0


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    async def invoke(self, directory: str, rest_client, faucet_client, count: int):
        output = os.path.join(directory, COLLECTION_RESULTS_FILE)
        argv = [
            "--count",
            str(count),
            "--base-delay",
            "0",
            "--jitter",
            "0",
            "--error-delay",
            "0",
            "--output",
            output,
            "--private-key",
            self.private_key,
        ]
        self.stdout = io.StringIO()
        with contextlib.redirect_stdout(self.stdout), contextlib.redirect_stderr(
            io.StringIO()
        ):
            status = await main(argv, rest_client, faucet_client)
        with open(output) as f:
            return status, json.load(f)

    async def test_all_created(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            status, document = await self.invoke(directory, rest_client, faucet_client, 3)
        self.assertEqual(status, 0)
        self.assertEqual(document["summary"]["total"], 3)
        self.assertEqual(document["summary"]["successful"], 3)
        self.assertEqual(
            [c["name"] for c in document["collections"]],
            ["UFC Fighters #1", "UFC Fighters #2", "UFC Fighters #3"],
        )
        self.assertEqual(rest_client.submit_bcs_transaction.await_count, 3)
        self.assertEqual(
            self.stdout.getvalue().count("Creating collection: UFC Fighters #1..."), 1
        )

    async def test_failure_is_recorded_and_run_continues(self):
        rest_client, faucet_client = mock_clients()
        rest_client.submit_bcs_transaction.side_effect = [
            "0x1",
            ApiError("ECOLLECTION_ALREADY_EXISTS", 400),
            "0x3",
        ]
        with tempfile.TemporaryDirectory() as directory:
            status, document = await self.invoke(directory, rest_client, faucet_client, 3)
        self.assertEqual(status, 1)
        self.assertEqual(document["summary"]["successful"], 2)
        self.assertEqual(document["summary"]["failed"], 1)
        self.assertIn("ECOLLECTION_ALREADY_EXISTS", document["collections"][1]["error"])
        self.assertEqual(document["collections"][2]["hash"], "0xabc")


if __name__ == "__main__":
    run()
