# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client for the ``ufc_nft`` Move module.

Each entry function has a ``*_payload`` builder that only encodes arguments,
and a coroutine that submits the payload through a
:class:`~ufc_nft.submitter.TransactionSubmitter` and raises
:class:`~ufc_nft.errors.TransactionFailed` if the VM rejects it.

The module itself (series, sets, collections, editions, royalties) lives on
chain; argument order and types here mirror its entry function signatures.

Examples:
    Create a collection and mint into it::

        client = UfcNftClient(TransactionSubmitter(rest_client))
        await client.create_collection(
            account, "UFC Collection", "https://ufc.com/collection",
            "The official UFC NFT collection", 10000,
        )
        await client.mint_token(
            account, 1, "UFC Collection", "Jon Jones",
            "https://ufc.com/nft/jon-jones", "UFC Heavyweight Champion Jon Jones",
            "Jon Jones", "Heavyweight", "27-1-0", 1,
        )
"""

from __future__ import annotations

import unittest
import unittest.mock
from typing import List, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.package_publisher import MAX_TRANSACTION_SIZE, PackagePublisher
from aptos_sdk.transactions import EntryFunction, TransactionArgument, TransactionPayload
from aptos_sdk.type_tag import StructTag, TypeTag

from .common import CONTRACT_ADDRESS, MODULE_NAME
from .errors import ConfigError, TransactionFailed
from .submitter import TransactionResult, TransactionSubmitter, entry_function_payload

TOKEN_STRUCT = "0x4::token::Token"


class UfcNftClient:
    """A wrapper around submitting ``ufc_nft`` entry functions"""

    submitter: TransactionSubmitter
    module: str

    def __init__(
        self, submitter: TransactionSubmitter, module_address: str = CONTRACT_ADDRESS
    ):
        self.submitter = submitter
        self.module = f"{module_address}::{MODULE_NAME}"

    async def _submit(
        self, sender: Account, payload: TransactionPayload
    ) -> TransactionResult:
        result = await self.submitter.submit(sender, payload)
        return result.raise_for_status()

    #
    # Collections and tokens
    #

    def create_collection_payload(
        self,
        name: str,
        uri: str,
        description: str,
        maximum: int,
        mutable_uri: Optional[bool] = None,
    ) -> TransactionPayload:
        """
        :param mutable_uri: Trailing flag of deployments that allow collection
            URI updates; omitted from the arguments when None
        """
        transaction_arguments = [
            TransactionArgument(name, Serializer.str),
            TransactionArgument(uri, Serializer.str),
            TransactionArgument(description, Serializer.str),
            TransactionArgument(maximum, Serializer.u64),
        ]
        if mutable_uri is not None:
            transaction_arguments.append(
                TransactionArgument(mutable_uri, Serializer.bool)
            )
        return entry_function_payload(
            self.module, "create_collection", transaction_arguments
        )

    async def create_collection(
        self,
        sender: Account,
        name: str,
        uri: str,
        description: str,
        maximum: int,
        mutable_uri: Optional[bool] = None,
    ) -> TransactionResult:
        print(f"Creating collection: {name}...")
        payload = self.create_collection_payload(
            name, uri, description, maximum, mutable_uri
        )
        return await self._submit(sender, payload)

    @staticmethod
    def _token_arguments(
        token_id: int,
        collection: str,
        name: str,
        uri: str,
        description: str,
        fighter_name: str,
        weight_class: str,
        record: str,
        ranking: int,
    ) -> List[TransactionArgument]:
        return [
            TransactionArgument(token_id, Serializer.u64),
            TransactionArgument(collection, Serializer.str),
            TransactionArgument(name, Serializer.str),
            TransactionArgument(uri, Serializer.str),
            TransactionArgument(description, Serializer.str),
            TransactionArgument(fighter_name, Serializer.str),
            TransactionArgument(weight_class, Serializer.str),
            TransactionArgument(record, Serializer.str),
            TransactionArgument(ranking, Serializer.u64),
        ]

    def mint_token_payload(
        self,
        token_id: int,
        collection: str,
        name: str,
        uri: str,
        description: str,
        fighter_name: str,
        weight_class: str,
        record: str,
        ranking: int,
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "mint_token",
            self._token_arguments(
                token_id,
                collection,
                name,
                uri,
                description,
                fighter_name,
                weight_class,
                record,
                ranking,
            ),
        )

    async def mint_token(
        self,
        sender: Account,
        token_id: int,
        collection: str,
        name: str,
        uri: str,
        description: str,
        fighter_name: str,
        weight_class: str,
        record: str,
        ranking: int,
    ) -> TransactionResult:
        print(f"Minting token: {name} with ID {token_id}...")
        payload = self.mint_token_payload(
            token_id,
            collection,
            name,
            uri,
            description,
            fighter_name,
            weight_class,
            record,
            ranking,
        )
        return await self._submit(sender, payload)

    def mint_token_for_payload(
        self,
        recipient: AccountAddress,
        token_id: int,
        collection: str,
        name: str,
        uri: str,
        description: str,
        fighter_name: str,
        weight_class: str,
        record: str,
        ranking: int,
    ) -> TransactionPayload:
        transaction_arguments = [
            TransactionArgument(recipient, Serializer.struct)
        ] + self._token_arguments(
            token_id,
            collection,
            name,
            uri,
            description,
            fighter_name,
            weight_class,
            record,
            ranking,
        )
        return entry_function_payload(
            self.module, "mint_token_for", transaction_arguments
        )

    async def mint_token_for(
        self,
        sender: Account,
        recipient: AccountAddress,
        token_id: int,
        collection: str,
        name: str,
        uri: str,
        description: str,
        fighter_name: str,
        weight_class: str,
        record: str,
        ranking: int,
    ) -> TransactionResult:
        print(f"Minting token: {name} with ID {token_id} for recipient {recipient}...")
        payload = self.mint_token_for_payload(
            recipient,
            token_id,
            collection,
            name,
            uri,
            description,
            fighter_name,
            weight_class,
            record,
            ranking,
        )
        return await self._submit(sender, payload)

    def batch_mint_simple_payload(
        self, collections: List[str], uris: List[str]
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "batch_mint_simple",
            [
                TransactionArgument(
                    collections, Serializer.sequence_serializer(Serializer.str)
                ),
                TransactionArgument(uris, Serializer.sequence_serializer(Serializer.str)),
            ],
        )

    async def batch_mint_simple(
        self, sender: Account, collections: List[str], uris: List[str]
    ) -> TransactionResult:
        print(f"Batch minting {len(collections)} tokens...")
        return await self._submit(
            sender, self.batch_mint_simple_payload(collections, uris)
        )

    def batch_mint_simple_for_payload(
        self,
        collections: List[str],
        recipients: List[AccountAddress],
        uris: List[str],
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "batch_mint_simple_for",
            [
                TransactionArgument(
                    collections, Serializer.sequence_serializer(Serializer.str)
                ),
                TransactionArgument(
                    recipients, Serializer.sequence_serializer(Serializer.struct)
                ),
                TransactionArgument(uris, Serializer.sequence_serializer(Serializer.str)),
            ],
        )

    async def batch_mint_simple_for(
        self,
        sender: Account,
        collections: List[str],
        recipients: List[AccountAddress],
        uris: List[str],
    ) -> TransactionResult:
        print(f"Batch minting {len(collections)} tokens...")
        return await self._submit(
            sender, self.batch_mint_simple_for_payload(collections, recipients, uris)
        )

    #
    # Series, sets and editions
    #

    def create_series_payload(
        self,
        name: str,
        description: str,
        uri: str,
        max_supply: int,
        royalty: int,
        metadata_uri: str,
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "create_series",
            [
                TransactionArgument(name, Serializer.str),
                TransactionArgument(description, Serializer.str),
                TransactionArgument(uri, Serializer.str),
                TransactionArgument(max_supply, Serializer.u64),
                TransactionArgument(royalty, Serializer.u64),
                TransactionArgument(metadata_uri, Serializer.str),
            ],
        )

    async def create_series(
        self,
        sender: Account,
        name: str,
        description: str,
        uri: str,
        max_supply: int,
        royalty: int,
        metadata_uri: str,
    ) -> TransactionResult:
        payload = self.create_series_payload(
            name, description, uri, max_supply, royalty, metadata_uri
        )
        return await self._submit(sender, payload)

    def create_set_payload(
        self,
        series_id: int,
        name: str,
        description: str,
        maximum_editions: int,
        metadata_hash: str,
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "create_set",
            [
                TransactionArgument(series_id, Serializer.u64),
                TransactionArgument(name, Serializer.str),
                TransactionArgument(description, Serializer.str),
                TransactionArgument(maximum_editions, Serializer.u64),
                TransactionArgument(metadata_hash, Serializer.str),
            ],
        )

    async def create_set(
        self,
        sender: Account,
        series_id: int,
        name: str,
        description: str,
        maximum_editions: int,
        metadata_hash: str,
    ) -> TransactionResult:
        payload = self.create_set_payload(
            series_id, name, description, maximum_editions, metadata_hash
        )
        return await self._submit(sender, payload)

    def mint_nft_payload(
        self,
        recipient: AccountAddress,
        series_id: int,
        set_id: int,
        edition_number: int,
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "mint_nft",
            [
                TransactionArgument(recipient, Serializer.struct),
                TransactionArgument(series_id, Serializer.u64),
                TransactionArgument(set_id, Serializer.u64),
                TransactionArgument(edition_number, Serializer.u64),
            ],
        )

    async def mint_nft(
        self,
        sender: Account,
        recipient: AccountAddress,
        series_id: int,
        set_id: int,
        edition_number: int,
    ) -> TransactionResult:
        payload = self.mint_nft_payload(recipient, series_id, set_id, edition_number)
        return await self._submit(sender, payload)

    def add_metadata_payload(
        self,
        nft_id: int,
        attributes: List[str],
        media_type: str,
        media_url: str,
    ) -> TransactionPayload:
        return entry_function_payload(
            self.module,
            "add_metadata",
            [
                TransactionArgument(nft_id, Serializer.u64),
                TransactionArgument(
                    attributes, Serializer.sequence_serializer(Serializer.str)
                ),
                TransactionArgument(media_type, Serializer.str),
                TransactionArgument(media_url, Serializer.str),
            ],
        )

    async def add_metadata(
        self,
        sender: Account,
        nft_id: int,
        attributes: List[str],
        media_type: str,
        media_url: str,
    ) -> TransactionResult:
        payload = self.add_metadata_payload(nft_id, attributes, media_type, media_url)
        return await self._submit(sender, payload)

    #
    # Framework functions
    #

    @staticmethod
    def set_token_uri_payload(token: AccountAddress, uri: str) -> TransactionPayload:
        """Payload for ``0x4::aptos_token::set_uri`` on a token object."""
        payload = EntryFunction.natural(
            "0x4::aptos_token",
            "set_uri",
            [TypeTag(StructTag.from_str(TOKEN_STRUCT))],
            [
                TransactionArgument(token, Serializer.struct),
                TransactionArgument(uri, Serializer.str),
            ],
        )
        return TransactionPayload(payload)

    async def set_token_uri(
        self, sender: Account, token: AccountAddress, uri: str
    ) -> TransactionResult:
        print(f"Updating URI for token at address {token}...")
        print(f"New URI: {uri}")
        return await self._submit(sender, self.set_token_uri_payload(token, uri))

    @staticmethod
    def publish_package_payload(
        package_metadata: bytes, modules: List[bytes]
    ) -> TransactionPayload:
        check_package_size(package_metadata, modules)
        return entry_function_payload(
            "0x1::code",
            "publish_package_txn",
            [
                TransactionArgument(package_metadata, Serializer.to_bytes),
                TransactionArgument(
                    modules, Serializer.sequence_serializer(Serializer.to_bytes)
                ),
            ],
        )

    async def publish_package(
        self, sender: Account, package_metadata: bytes, modules: List[bytes]
    ) -> TransactionResult:
        return await self._submit(
            sender, self.publish_package_payload(package_metadata, modules)
        )


def check_package_size(package_metadata: bytes, modules: List[bytes]):
    """Raise ConfigError if the package does not fit in one publish transaction."""
    if PackagePublisher.is_large_package(package_metadata, modules):
        raise ConfigError(
            f"Package exceeds the {MAX_TRANSACTION_SIZE} byte single transaction "
            "limit; publish it in chunks with `aptos move publish --chunked-publish`"
        )


def _str_arg(value: str) -> bytes:
    ser = Serializer()
    ser.str(value)
    return ser.output()


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.submitter = unittest.mock.MagicMock()
        self.submitter.submit = unittest.mock.AsyncMock(
            return_value=TransactionResult("0xabc", True, "Executed successfully")
        )
        self.client = UfcNftClient(self.submitter, "0x1")
        self.account = Account.generate()

    def test_create_collection_payload(self):
        payload = self.client.create_collection_payload(
            "UFC Collection", "https://ufc.com/c", "desc", 10000
        )
        entry = payload.value
        self.assertEqual(str(entry.module), "0x1::ufc_nft")
        self.assertEqual(entry.function, "create_collection")
        self.assertEqual(len(entry.args), 4)
        self.assertEqual(entry.args[0], _str_arg("UFC Collection"))
        self.assertEqual(entry.args[3], (10000).to_bytes(8, "little"))

        payload = self.client.create_collection_payload(
            "UFC Collection", "https://ufc.com/c", "desc", 10000, True
        )
        self.assertEqual(payload.value.args[4], b"\x01")

    def test_mint_token_for_payload(self):
        recipient = AccountAddress.from_str_relaxed("0xb51f")
        payload = self.client.mint_token_for_payload(
            recipient,
            2,
            "UFC Collection",
            "Conor McGregor",
            "https://ufc.com/nft/conor-mcgregor",
            "UFC Champion Conor McGregor",
            "Conor McGregor",
            "Lightweight",
            "22-6-0",
            5,
        )
        entry = payload.value
        self.assertEqual(entry.function, "mint_token_for")
        self.assertEqual(len(entry.args), 10)
        self.assertEqual(entry.args[0], recipient.address)
        self.assertEqual(entry.args[1], (2).to_bytes(8, "little"))
        self.assertEqual(entry.args[9], (5).to_bytes(8, "little"))

    def test_batch_mint_payload(self):
        payload = self.client.batch_mint_simple_payload(["A", "B"], ["u1", "u2"])
        entry = payload.value
        self.assertEqual(entry.function, "batch_mint_simple")
        self.assertEqual(entry.args[0], b"\x02" + _str_arg("A") + _str_arg("B"))

    def test_set_token_uri_payload(self):
        token = AccountAddress.from_str_relaxed("0xe799")
        entry = UfcNftClient.set_token_uri_payload(token, "ipfs://new").value
        self.assertEqual(str(entry.module), "0x4::aptos_token")
        self.assertEqual(entry.function, "set_uri")
        self.assertEqual(len(entry.ty_args), 1)
        self.assertEqual(entry.args[1], _str_arg("ipfs://new"))

    async def test_create_set_submits(self):
        result = await self.client.create_set(
            self.account, 7, "Main Event", "UFC 291", 100, "QmHash"
        )
        self.assertEqual(result.hash, "0xabc")
        sender, payload = self.submitter.submit.await_args.args
        self.assertIs(sender, self.account)
        self.assertEqual(payload.value.function, "create_set")
        self.assertEqual(payload.value.args[0], (7).to_bytes(8, "little"))

    async def test_failed_vm_status_raises(self):
        self.submitter.submit.return_value = TransactionResult(
            "0xdef", False, "Move abort in 0x1::ufc_nft: E_SERIES_FULL"
        )
        with self.assertRaises(TransactionFailed) as cm:
            await self.client.mint_nft(
                self.account, self.account.address(), 1, 1, 1
            )
        self.assertIn("E_SERIES_FULL", str(cm.exception))

    async def test_large_package_rejected_before_submit(self):
        modules = [b"\x00" * (MAX_TRANSACTION_SIZE // 2)] * 2
        with self.assertRaises(ConfigError) as cm:
            await self.client.publish_package(self.account, b"\x07UFC_NFT", modules)
        self.assertIn("--chunked-publish", str(cm.exception))
        self.submitter.submit.assert_not_called()
