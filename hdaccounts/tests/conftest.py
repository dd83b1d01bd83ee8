# Pytest looks here for fixtures
from typing import List, Tuple

import pytest

from hdaccounts.account import HDAccount
from hdaccounts.keystore import account_key_from_seed
from hdaccounts.networks import Net, SVMainnet
from hdaccounts.types import BIP32Key, ImportedKey


# BIP32 test vector 1.
TEST_SEED = bytes.fromhex('000102030405060708090a0b0c0d0e0f')
TEST_MASTER_XPUB = ('xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29ESFjq'
    'JoCu1Rupje8YtGqsefD265TMg7usUDFdp6W1EGMcet8')


class KeyImportRecorder:
    '''Stands in for the wallet engine key store.'''

    def __init__(self) -> None:
        self.calls: List[Tuple[List[ImportedKey], int]] = []

    def __call__(self, keys: List[ImportedKey], creation_time: int) -> None:
        self.calls.append((list(keys), creation_time))

    def imported_keys(self) -> List[ImportedKey]:
        return [ key for keys, _creation_time in self.calls for key in keys ]


@pytest.fixture(autouse=True)
def set_to_mainnet_network_on_test_finish():
    try:
        yield
    finally:
        Net.set_to(SVMainnet)


@pytest.fixture
def account_key() -> BIP32Key:
    return account_key_from_seed(TEST_SEED, 0)


@pytest.fixture
def other_account_key() -> BIP32Key:
    return account_key_from_seed(TEST_SEED, 1)


@pytest.fixture
def account(account_key) -> HDAccount:
    return HDAccount.create(account_key, "Primary")


@pytest.fixture
def other_account(other_account_key) -> HDAccount:
    return HDAccount.create(other_account_key, "Savings")


@pytest.fixture
def import_keys() -> KeyImportRecorder:
    return KeyImportRecorder()
