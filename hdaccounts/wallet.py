# ElectrumSV - lightweight Bitcoin SV client
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

'''The set of accounts that make up one wallet.

The wallet engine owns the keys, the storage and the network. It holds `HDWallet.lock` around
any batch of calls that change balances or extend chains. Every `HDWallet` method also takes
it, reads included, so the account list is never walked while another thread adds to it. The
accounts themselves take no locks.
'''

import json
import threading
from typing import Callable, cast, List, NamedTuple, Optional, Sequence

from bitcoinx import P2PKH_Address

from .account import HDAccount
from .constants import WALLET_ACCOUNTS_FIELD
from .exceptions import DerivationError, SerializationError, WalletLoadError
from .logs import logs
from .types import AccountData, BIP32Key, HDAddressDescription, KeyImportFunction, WalletData


logger = logs.get_logger("wallet")


# Given the position and document of a persisted account, supply its account key.
AccountKeyLookup = Callable[[int, AccountData], BIP32Key]


class AccountLoadFailure(NamedTuple):
    position: int
    data: AccountData
    error: Exception


class HDWallet:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._accounts: List[HDAccount] = []
        self.load_errors: List[AccountLoadFailure] = []

    @classmethod
    def restore(cls, data: WalletData, account_key_for: AccountKeyLookup) -> "HDWallet":
        '''Restore each account in its own failure boundary.

        An account whose key or document is bad is left out and recorded in `load_errors`, the
        other accounts are still usable. A document that is not a wallet at all raises
        `WalletLoadError`.
        '''
        if not isinstance(data, dict) or not isinstance(data.get(WALLET_ACCOUNTS_FIELD), list):
            raise WalletLoadError("wallet document has no '{}' list".format(
                WALLET_ACCOUNTS_FIELD))

        wallet = cls()
        for position, account_data in enumerate(data[WALLET_ACCOUNTS_FIELD]):
            try:
                account_key = account_key_for(position, account_data)
                account = HDAccount.restore(account_key, account_data)
            except (DerivationError, SerializationError) as e:
                logger.error("unable to restore account %d: %s", position, e)
                wallet.load_errors.append(AccountLoadFailure(position, account_data, e))
                continue
            wallet.add_account(account)
        return wallet

    @classmethod
    def loads(cls, text: str, account_key_for: AccountKeyLookup) -> "HDWallet":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise WalletLoadError("wallet document is not valid JSON: {}".format(e)) from e
        return cls.restore(cast(WalletData, data), account_key_for)

    def to_data(self) -> WalletData:
        with self.lock:
            return { "accounts": [ account.to_data() for account in self._accounts ] }

    def dumps(self) -> str:
        return json.dumps(self.to_data(), indent=4)

    def add_account(self, account: HDAccount) -> None:
        with self.lock:
            self._accounts.append(account)

    def create_account(self, account_key: BIP32Key, name: str) -> HDAccount:
        account = HDAccount.create(account_key, name)
        self.add_account(account)
        return account

    def get_accounts(self) -> Sequence[HDAccount]:
        with self.lock:
            return tuple(self._accounts)

    def get_account(self, name: str) -> Optional[HDAccount]:
        with self.lock:
            for account in self._accounts:
                if account.name() == name:
                    return account
        return None

    def apply_output(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes], value: int,
            is_available: bool) -> None:
        with self.lock:
            for account in self._accounts:
                account.apply_output(pubkey, pubkeyhash, value, is_available)

    def apply_input(self, pubkey: Optional[bytes], value: int) -> None:
        with self.lock:
            for account in self._accounts:
                account.apply_input(pubkey, value)

    def clear_balance(self) -> None:
        with self.lock:
            for account in self._accounts:
                account.clear_balance()

    def balance(self) -> int:
        with self.lock:
            return sum(account.balance() for account in self._accounts)

    def available(self) -> int:
        with self.lock:
            return sum(account.available() for account in self._accounts)

    def ensure_margins(self, import_keys: KeyImportFunction) -> int:
        '''Returns the largest number of addresses added to any chain of any account.'''
        with self.lock:
            return max((account.ensure_margins(import_keys) for account in self._accounts),
                default=0)

    def find_address(self, address: P2PKH_Address) -> Optional[HDAddressDescription]:
        with self.lock:
            for account in self._accounts:
                description = account.find_address(address)
                if description is not None:
                    return description
        return None

    def log_balance(self) -> None:
        with self.lock:
            for account in self._accounts:
                account.log_balance()
