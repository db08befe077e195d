# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client doubles for the ``Test`` classes and behave steps.

Nothing here is used at run time; scripts import it only from their tests.
"""

import unittest.mock

from aptos_sdk.async_client import ClientConfig


def mock_clients(balance: int = 10**9, txn_hash: str = "0xabc", events=None):
    """REST and faucet client doubles for a fully successful run."""
    rest_client = unittest.mock.MagicMock()
    rest_client.client_config = ClientConfig()
    rest_client.account = unittest.mock.AsyncMock(return_value={"sequence_number": "0"})
    rest_client.account_balance = unittest.mock.AsyncMock(return_value=balance)
    rest_client.create_bcs_signed_transaction = unittest.mock.AsyncMock(
        return_value=object()
    )
    rest_client.submit_bcs_transaction = unittest.mock.AsyncMock(return_value=txn_hash)
    rest_client.transaction_pending = unittest.mock.AsyncMock(return_value=False)
    rest_client.transaction_by_hash = unittest.mock.AsyncMock(
        return_value={
            "hash": txn_hash,
            "version": "1",
            "success": True,
            "vm_status": "Executed successfully",
            "events": events or [],
        }
    )
    faucet_client = unittest.mock.MagicMock()
    faucet_client.fund_account = unittest.mock.AsyncMock(return_value="0x1")
    faucet_client.close = unittest.mock.AsyncMock()
    return rest_client, faucet_client
