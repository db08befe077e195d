# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
UFC NFT scripts - command-line tooling for the ``ufc_nft`` Move module.

The package drives a deployed ``ufc_nft`` module on an Aptos network. Every
script follows the same pipeline:

1. **Account loading**: read the signing key from ``.aptos/config.yaml`` (or an
   explicit ``--private-key``), falling back to an ephemeral account.
2. **Funding**: top the account up from the faucet when its balance is low.
3. **Submission**: build an entry function payload, sign, submit and wait for
   the transaction to commit, backing off on rate limits.
4. **Extraction**: pull identifiers (series id, set id, NFT id) out of the
   emitted events.
5. **Persistence**: write identifiers and run summaries to local files so the
   next script in the pipeline can pick them up.

Module Organization:
    - **common**: network endpoints, module addresses and file names
    - **errors**: the exception taxonomy shared by every script
    - **account_loader**: private key normalization and account loading
    - **funding**: balance checks and faucet top-ups
    - **submitter**: sign, submit and confirm with rate-limit backoff
    - **events**: typed access to emitted events
    - **persist**: identifier files and JSON run summaries
    - **client**: payload builders for the ``ufc_nft`` entry functions
    - **context**: wiring of clients and account for a script run
    - **cli**: the ``ufc-nft`` multi-command tool
    - **scripts**: the series/set pipeline, deployment and batch scripts

Quick Start::

    # Create a collection on devnet
    python -m ufc_nft.cli create-collection "UFC Collection" \\
        "https://ufc.com/collection" "The official UFC NFT collection" 10000

    # Series/set pipeline
    python -m ufc_nft.scripts.create_series
    python -m ufc_nft.scripts.create_set
    python -m ufc_nft.scripts.mint_nft
"""
