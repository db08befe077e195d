# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Common configuration shared by the UFC NFT scripts.

Every setting can be overridden through environment variables. A ``.env`` file
in the current working directory is loaded first, so a deployment can keep its
endpoints and module address next to the Move package.

Environment Variables:
    NODE_URL: Aptos REST API node endpoint
    FAUCET_URL: Aptos faucet endpoint used to fund accounts
    FAUCET_AUTH_TOKEN: Optional bearer token for the faucet
    APTOS_API_KEY: Optional API key for the node (raises rate limits)
    APTOS_CONFIG_PATH: Path of the Aptos CLI config holding ``private_key:``
    UFC_NFT_ADDRESS: Address of the collection based ``ufc_nft`` deployment
    UFC_NFT_RESOURCE_ADDRESS: Address of the series/set ``ufc_nft`` deployment

Network Configurations:
    Devnet (Default):
    - Node: https://fullnode.devnet.aptoslabs.com/v1
    - Faucet: https://faucet.devnet.aptoslabs.com

    Testnet:
    - Node: https://fullnode.testnet.aptoslabs.com/v1
    - Faucet: https://faucet.testnet.aptoslabs.com
"""

import os

from dotenv import load_dotenv

load_dotenv()

NODE_URL = os.getenv("NODE_URL", "https://fullnode.devnet.aptoslabs.com/v1")

FAUCET_URL = os.getenv("FAUCET_URL", "https://faucet.devnet.aptoslabs.com")

FAUCET_AUTH_TOKEN = os.getenv("FAUCET_AUTH_TOKEN")

API_KEY = os.getenv("APTOS_API_KEY")

# Aptos CLI config written by `aptos init`
CONFIG_PATH = os.getenv("APTOS_CONFIG_PATH", os.path.join(".aptos", "config.yaml"))

# Collection based deployment used by the ufc-nft tool and the batch scripts
CONTRACT_ADDRESS = os.getenv(
    "UFC_NFT_ADDRESS",
    "0x70c3a99237fe6e34da53a324b53685aeffb20c09b35681eb32c7718bd36179dc",
)

# Series/set deployment published through a resource account
RESOURCE_ACCOUNT_ADDRESS = os.getenv(
    "UFC_NFT_RESOURCE_ADDRESS",
    "0x464b630d38076515d4fa0229d123290d3eeef9fa9e0859fb36fe9401299650f3",
)

MODULE_NAME = "ufc_nft"

# Hand-off files between pipeline scripts
SERIES_ID_FILE = "series_id.txt"
SET_ID_FILE = "set_id.txt"

BATCH_MINT_DATA_FILE = os.path.join("data", "batch-mint-data-50.json")
BATCH_MINT_RESULTS_FILE = "batch-mint-results.json"
BATCH_MINT_ERROR_FILE = "batch-mint-error.json"
COLLECTION_RESULTS_FILE = "collection-creation-results.json"
UPDATE_URI_RESULT_FILE = "update-uri-result.json"
UPDATE_URI_ERROR_FILE = "update-uri-error.json"

# Faucet top-up amounts in octas
DEFAULT_FUND_AMOUNT = 100_000_000
COLLECTIONS_FUND_AMOUNT = 500_000_000
UPDATE_URI_FUND_AMOUNT = 1_000_000_000
BATCH_MINT_FUND_AMOUNT = 2_000_000_000
