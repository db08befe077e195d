# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Exception taxonomy for the UFC NFT scripts.

Every failure that ends a script run is one of the classes below. The script
entry points print the error and exit with status 1; nothing here is meant to
be caught and retried by callers, except that the submitter retries rate
limits internally before raising :class:`RateLimitExceeded`.

- :class:`ConfigError`: local state is missing or malformed (private key,
  identifier files, batch data). The operator has to fix the file.
- :class:`RateLimitExceeded`: the node kept rate limiting after every retry.
- :class:`TransactionFailed`: the transaction committed with a non-success VM
  status.
- :class:`NetworkError`: any other failure talking to the node or faucet.
"""

from typing import Optional


class UfcNftError(Exception):
    """Base class for errors raised by the UFC NFT scripts."""


class ConfigError(UfcNftError):
    """A local key, identifier or data file is missing or malformed"""


class RateLimitExceeded(UfcNftError):
    """The node rate limited every attempt of a submission"""

    attempts: int
    last_message: str

    def __init__(self, attempts: int, last_message: str):
        super().__init__(
            f"Rate limit exceeded after {attempts} attempts: {last_message}"
        )
        self.attempts = attempts
        self.last_message = last_message


class TransactionFailed(UfcNftError):
    """The transaction committed but the VM reported a failure"""

    txn_hash: str
    vm_status: str

    def __init__(self, txn_hash: str, vm_status: str):
        super().__init__(f"Transaction {txn_hash} failed: {vm_status}")
        self.txn_hash = txn_hash
        self.vm_status = vm_status


class NetworkError(UfcNftError):
    """A node or faucet request failed for a reason other than rate limiting"""

    status_code: Optional[int]

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code:
            return f"NetworkError ({self.status_code}): {message}"
        return f"NetworkError: {message}"
