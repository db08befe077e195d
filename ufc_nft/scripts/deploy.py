# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Publish the compiled ``ufc_nft`` Move package.

The package is read from ``<package-dir>/build/<name>/`` where ``<name>`` is
the package name declared in ``Move.toml``: every ``bytecode_modules/*.mv``
file plus ``package-metadata.bcs``. Pass ``--compile`` to run
``aptos move compile --save-metadata`` first; this needs the Aptos CLI on the
PATH or in ``APTOS_CLI_PATH``.

Examples::

    python -m ufc_nft.scripts.deploy --package-dir ./move

    python -m ufc_nft.scripts.deploy --package-dir ./move --compile \\
        --named-address ufc_nft=0x70c3...
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
from typing import Dict, List, Optional, Tuple

import tomli
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.aptos_cli_wrapper import AptosCLIWrapper, CLIError
from aptos_sdk.async_client import FaucetClient, RestClient
from aptos_sdk.package_publisher import MAX_TRANSACTION_SIZE

from ..client import check_package_size
from ..common import DEFAULT_FUND_AMOUNT
from ..context import add_common_arguments, configure_logging, open_context
from ..errors import ConfigError, UfcNftError
from ..testing import mock_clients


def key_value(indata: str) -> Tuple[str, AccountAddress]:
    """Parse a ``name=address`` named address argument."""
    split_indata = indata.split("=")
    if len(split_indata) != 2:
        raise argparse.ArgumentTypeError(
            "Invalid named-address, expected name=account address"
        )
    name = split_indata[0]
    try:
        account_address = AccountAddress.from_str_relaxed(split_indata[1])
    except (RuntimeError, ValueError) as e:
        raise argparse.ArgumentTypeError(f"Invalid named-address {indata}: {e}")
    return (name, account_address)


def read_package(package_dir: str) -> Tuple[str, bytes, List[bytes]]:
    """
    Read a compiled package.

    :return: (package name, package metadata, module bytecode in file name order)
    :raises ConfigError: If Move.toml or the build output is missing
    """
    try:
        with open(os.path.join(package_dir, "Move.toml"), "rb") as f:
            data = tomli.load(f)
        package = data["package"]["name"]
    except (OSError, KeyError, tomli.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read Move.toml in {package_dir}: {e}") from e

    package_build_dir = os.path.join(package_dir, "build", package)
    module_directory = os.path.join(package_build_dir, "bytecode_modules")
    try:
        module_names = sorted(
            name for name in os.listdir(module_directory) if name.endswith(".mv")
        )
        modules = []
        for module_name in module_names:
            with open(os.path.join(module_directory, module_name), "rb") as f:
                modules.append(f.read())
        with open(os.path.join(package_build_dir, "package-metadata.bcs"), "rb") as f:
            metadata = f.read()
    except OSError as e:
        raise ConfigError(
            f"Compiled package not found in {package_build_dir}; "
            f"compile with --save-metadata first: {e}"
        ) from e
    if not modules:
        raise ConfigError(f"No modules in {module_directory}")
    return package, metadata, modules


def compile_package(package_dir: str, named_addresses: Dict[str, AccountAddress]):
    if not AptosCLIWrapper.does_cli_exist():
        raise ConfigError(
            "Missing Aptos CLI. Please install it or export its path to "
            "APTOS_CLI_PATH environment variable."
        )
    try:
        AptosCLIWrapper.compile_package(package_dir, named_addresses)
    except CLIError as e:
        raise ConfigError(f"Compiling {package_dir} failed: {e}") from e


async def main(
    args: List[str],
    rest_client: Optional[RestClient] = None,
    faucet_client: Optional[FaucetClient] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Publish the ufc_nft Move package")
    parser.add_argument(
        "--package-dir",
        help="Move package directory containing Move.toml",
        type=str,
        default=".",
    )
    parser.add_argument(
        "--compile",
        help="Compile the package with the Aptos CLI before publishing",
        action="store_true",
    )
    parser.add_argument(
        "--named-address",
        help="Named address mapping in format 'name=address' (repeatable)",
        type=key_value,
        action="append",
        default=[],
    )
    add_common_arguments(parser)
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    try:
        if parsed_args.compile:
            compile_package(parsed_args.package_dir, dict(parsed_args.named_address))
        package, metadata, modules = read_package(parsed_args.package_dir)
        check_package_size(metadata, modules)
        print(f"Publishing package {package} with {len(modules)} module(s)")

        context = await open_context(
            parsed_args, DEFAULT_FUND_AMOUNT, rest_client, faucet_client
        )
        try:
            result = await context.nft_client.publish_package(
                context.account, metadata, modules
            )
        finally:
            await context.close()
    except UfcNftError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Transaction hash: {result.hash}")
    print(f"Module published successfully at {context.account.address()}!")
    return 0


def run():
    sys.exit(asyncio.run(main(sys.argv[1:])))


class Test(unittest.IsolatedAsyncioTestCase):
    private_key = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    def write_package(self, directory: str):
        with open(os.path.join(directory, "Move.toml"), "w") as f:
            f.write('[package]\nname = "UFC_NFT"\nversion = "1.0.0"\n')
        build = os.path.join(directory, "build", "UFC_NFT")
        os.makedirs(os.path.join(build, "bytecode_modules"))
        with open(os.path.join(build, "package-metadata.bcs"), "wb") as f:
            f.write(b"\x07UFC_NFT")
        with open(os.path.join(build, "bytecode_modules", "ufc_nft.mv"), "wb") as f:
            f.write(b"\xa1\x1c\xeb\x0b")

    def test_read_package(self):
        with tempfile.TemporaryDirectory() as directory:
            self.write_package(directory)
            package, metadata, modules = read_package(directory)
        self.assertEqual(package, "UFC_NFT")
        self.assertEqual(metadata, b"\x07UFC_NFT")
        self.assertEqual(modules, [b"\xa1\x1c\xeb\x0b"])

    def test_read_package_missing_build(self):
        with tempfile.TemporaryDirectory() as directory:
            with open(os.path.join(directory, "Move.toml"), "w") as f:
                f.write('[package]\nname = "UFC_NFT"\n')
            with self.assertRaises(ConfigError):
                read_package(directory)

    def test_key_value(self):
        name, address = key_value("ufc_nft=0x1")
        self.assertEqual(name, "ufc_nft")
        self.assertEqual(address, AccountAddress.from_str_relaxed("0x1"))
        with self.assertRaises(argparse.ArgumentTypeError):
            key_value("ufc_nft")

    async def test_publish(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            self.write_package(directory)
            status = await main(
                ["--package-dir", directory, "--private-key", self.private_key],
                rest_client,
                faucet_client,
            )
        self.assertEqual(status, 0)
        _, payload = rest_client.create_bcs_signed_transaction.await_args.args
        self.assertEqual(str(payload.value.module), "0x1::code")
        self.assertEqual(payload.value.function, "publish_package_txn")

    async def test_large_package_skips_network(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            self.write_package(directory)
            module = os.path.join(
                directory, "build", "UFC_NFT", "bytecode_modules", "large.mv"
            )
            with open(module, "wb") as f:
                f.write(b"\x00" * MAX_TRANSACTION_SIZE)
            with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(
                io.StringIO()
            ) as errors:
                status = await main(
                    ["--package-dir", directory, "--private-key", self.private_key],
                    rest_client,
                    faucet_client,
                )
        self.assertEqual(status, 1)
        self.assertIn("chunked", errors.getvalue())
        rest_client.account.assert_not_called()

    async def test_missing_package_skips_network(self):
        rest_client, faucet_client = mock_clients()
        with tempfile.TemporaryDirectory() as directory:
            status = await main(
                ["--package-dir", directory, "--private-key", self.private_key],
                rest_client,
                faucet_client,
            )
        self.assertEqual(status, 1)
        rest_client.account.assert_not_called()


if __name__ == "__main__":
    run()
