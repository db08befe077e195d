# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Signing account loading for the UFC NFT scripts.

Keys come from one of three places, in order:

1. An explicit private key (``--private-key`` on the command line).
2. The ``private_key:`` line of the Aptos CLI config, ``.aptos/config.yaml`` by
   default. The Aptos CLI has written keys in several shapes over time, so the
   value is normalized to the canonical ``0x`` + 64 hex digit form first::

       private_key: "ed25519-priv-0x5120c5...644b"
       private_key: 0x5120c5...644b
       private_key: 5120c5...644b

3. A freshly generated account, used only when the config file cannot be read
   at all. The generated key lives only as long as the process unless it is
   written back with :func:`save_generated_key`, so every such run uses a new
   address and forfeits whatever the faucet gave the previous one. The fallback
   is logged as a warning and can be disabled with ``allow_generate=False``.

A config file that exists but has no ``private_key:`` line, or whose key has
the wrong length, is a :class:`~ufc_nft.errors.ConfigError` rather than a
reason to generate a new account.
"""

from __future__ import annotations

import logging
import os
import string
import tempfile
import unittest
from typing import Optional

from aptos_sdk.account import Account

from .common import CONFIG_PATH
from .errors import ConfigError

logger = logging.getLogger(__name__)

PRIVATE_KEY_MARKER = "private_key:"
AIP80_ED25519_PREFIX = "ed25519-priv-"
CANONICAL_KEY_LENGTH = 66


def normalize_private_key(raw_key: str) -> str:
    """Normalize a private key to the canonical ``0x`` + 64 hex digit form.

    Accepts a raw hex key, a ``0x`` prefixed key or an AIP-80
    ``ed25519-priv-0x`` prefixed key, optionally wrapped in quotes.

    :param raw_key: Key as read from the command line or config file
    :return: The key as ``0x`` followed by 64 lowercase hex digits
    :raises ConfigError: If the normalized key is not 66 characters of hex
    """
    key = raw_key.strip().replace('"', "").replace("'", "")
    if key.startswith(AIP80_ED25519_PREFIX):
        key = key[len(AIP80_ED25519_PREFIX) :]
    if not key.startswith("0x"):
        key = "0x" + key

    if len(key) != CANONICAL_KEY_LENGTH:
        raise ConfigError(
            f"Invalid private key length: expected {CANONICAL_KEY_LENGTH} "
            f"characters (0x + 64 hex digits), got {len(key)}"
        )
    if not all(c in string.hexdigits for c in key[2:]):
        raise ConfigError("Invalid private key: expected hex digits after 0x")
    return key.lower()


def read_config_private_key(config_path: str = CONFIG_PATH) -> str:
    """Read and normalize the private key from an Aptos CLI config file.

    :raises OSError: If the file cannot be read
    :raises ConfigError: If no ``private_key:`` line exists or the key is malformed
    """
    with open(config_path) as f:
        content = f.read()

    for line in content.splitlines():
        if PRIVATE_KEY_MARKER in line:
            return normalize_private_key(line.split(PRIVATE_KEY_MARKER, 1)[1])
    raise ConfigError(f"Private key not found in config {config_path}")


def load_account(
    private_key: Optional[str] = None,
    config_path: str = CONFIG_PATH,
    allow_generate: bool = True,
    save_generated: bool = False,
) -> Account:
    """Load the signing account for a script run.

    :param private_key: Explicit key; takes precedence over the config file
    :param config_path: Aptos CLI config holding a ``private_key:`` line
    :param allow_generate: Generate an ephemeral account when the config file
        cannot be read. When False an unreadable config is a ConfigError.
    :param save_generated: Write a generated key to ``config_path`` so the
        next run reuses its address
    :return: The signing account
    :raises ConfigError: If a key is present but malformed, or the config is
        unreadable and generation is disabled
    """
    if private_key is not None:
        return Account.load_key(normalize_private_key(private_key))

    try:
        key = read_config_private_key(config_path)
    except OSError as e:
        if not allow_generate:
            raise ConfigError(f"Cannot read config {config_path}: {e}") from e
        account = Account.generate()
        if save_generated:
            logger.warning(
                "Config %s could not be read (%s); generated account %s",
                config_path,
                e,
                account.address(),
            )
            save_generated_key(account, config_path)
        else:
            logger.warning(
                "Config %s could not be read (%s); using ephemeral account %s. "
                "Its key is not saved unless --save-generated-key is given.",
                config_path,
                e,
                account.address(),
            )
        return account
    return Account.load_key(key)


def save_generated_key(account: Account, config_path: str = CONFIG_PATH):
    """Write an account's key in the Aptos CLI config layout.

    Later runs of :func:`load_account` with the same path pick up the same
    address. Any existing file is overwritten.
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(config_path, "w") as f:
        f.write("---\n")
        f.write("profiles:\n")
        f.write("  default:\n")
        f.write(f'    private_key: "{account.private_key.hex()}"\n')
        f.write(f'    account: "{account.address()}"\n')
    logger.info("Saved key for %s to %s", account.address(), config_path)


class Test(unittest.TestCase):
    hex_key = "005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"

    def test_normalize_prefix_variants(self):
        expected = "0x" + self.hex_key
        for raw in (
            self.hex_key,
            "0x" + self.hex_key,
            "ed25519-priv-0x" + self.hex_key,
            f'"ed25519-priv-0x{self.hex_key}"',
            f"  '0x{self.hex_key}'  ",
        ):
            self.assertEqual(normalize_private_key(raw), expected)

    def test_normalize_rejects_wrong_length(self):
        for raw in (self.hex_key[:-2], self.hex_key + "00", "", "0x"):
            with self.assertRaises(ConfigError):
                normalize_private_key(raw)

    def test_normalize_rejects_non_hex(self):
        with self.assertRaises(ConfigError):
            normalize_private_key("zz" + self.hex_key[2:])

    def test_explicit_key(self):
        account = load_account("ed25519-priv-0x" + self.hex_key, "/nonexistent")
        self.assertEqual(account, Account.load_key(self.hex_key))

    def test_config_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "config.yaml")
            with open(path, "w") as f:
                f.write("---\nprofiles:\n  default:\n")
                f.write(f'    private_key: "ed25519-priv-0x{self.hex_key}"\n')
            account = load_account(config_path=path)
        self.assertEqual(account, Account.load_key(self.hex_key))

    def test_config_without_marker(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "config.yaml")
            with open(path, "w") as f:
                f.write("---\nprofiles:\n  default:\n    network: Devnet\n")
            with self.assertRaises(ConfigError):
                load_account(config_path=path)

    def test_config_with_short_key(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "config.yaml")
            with open(path, "w") as f:
                f.write("private_key: 0x1234\n")
            with self.assertRaises(ConfigError):
                load_account(config_path=path)

    def test_unreadable_config_generates(self):
        with self.assertLogs(logger, level="WARNING"):
            first = load_account(config_path="/nonexistent/config.yaml")
            second = load_account(config_path="/nonexistent/config.yaml")
        self.assertNotEqual(first.address(), second.address())

    def test_unreadable_config_without_generation(self):
        with self.assertRaises(ConfigError):
            load_account(config_path="/nonexistent/config.yaml", allow_generate=False)

    def test_generate_and_save(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, ".aptos", "config.yaml")
            with self.assertLogs(logger, level="WARNING"):
                generated = load_account(config_path=path, save_generated=True)
            self.assertEqual(load_account(config_path=path), generated)

    def test_save_generated_key(self):
        account = Account.generate()
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, ".aptos", "config.yaml")
            save_generated_key(account, path)
            loaded = load_account(config_path=path, allow_generate=False)
        self.assertEqual(account, loaded)
