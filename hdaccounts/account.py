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

from typing import cast, Iterable, Mapping, Optional

from bitcoinx import hash_to_hex_str, P2PKH_Address

from .address import HDAddress, read_field
from .bitcoin import output_script_identity
from .chain import HDChain
from .coinchooser import CoinChooserBase, CoinChooserPrivacy
from .constants import (ACCOUNT_CHANGE_FIELD, ACCOUNT_NAME_FIELD, ACCOUNT_RECEIVE_FIELD,
    CHANGE_CHAIN_NAME, RECEIVING_CHAIN_NAME)
from .exceptions import DerivationError, ScriptParseError, SerializationError
from .keystore import is_bip32_key, xpub_string
from .logs import logs
from .types import AccountData, BIP32Key, ChainData, CoinSelection, HDAddressDescription, \
    ImportedKey, KeyImportFunction, SpendableOutput


logger = logs.get_logger("account")


class HDAccount:
    '''A receive chain and a change chain derived from the same account key.'''

    def __init__(self, account_key: BIP32Key, name: str, receive_chain: HDChain,
            change_chain: HDChain) -> None:
        self._account_key = account_key
        self._name = name
        self._receive_chain = receive_chain
        self._change_chain = change_chain
        self._logger = logs.get_logger("account[{}]".format(name))

    @classmethod
    def create(cls, account_key: BIP32Key, name: str) -> "HDAccount":
        if not is_bip32_key(account_key):
            raise DerivationError("account key is not an extended key")
        receive_chain = HDChain.create(account_key, True, RECEIVING_CHAIN_NAME)
        change_chain = HDChain.create(account_key, False, CHANGE_CHAIN_NAME)
        account = cls(account_key, name, receive_chain, change_chain)
        account._logger.info("created account")
        return account

    @classmethod
    def restore(cls, account_key: BIP32Key, data: AccountData) -> "HDAccount":
        if not is_bip32_key(account_key):
            raise DerivationError("account key is not an extended key")
        mapping = cast(Mapping[str, object], data)
        name = cast(str, read_field(mapping, ACCOUNT_NAME_FIELD, str, "account"))
        context = "account {}".format(name)
        receive_data = cast(ChainData, read_field(mapping, ACCOUNT_RECEIVE_FIELD, dict, context))
        change_data = cast(ChainData, read_field(mapping, ACCOUNT_CHANGE_FIELD, dict, context))

        receive_chain = HDChain.restore(account_key, receive_data)
        change_chain = HDChain.restore(account_key, change_data)
        # The roles are fixed by the derivation subpath, a swapped document would attribute
        # balances to the wrong keys.
        if not receive_chain.is_receive():
            raise SerializationError(ACCOUNT_RECEIVE_FIELD, context)
        if change_chain.is_receive():
            raise SerializationError(ACCOUNT_CHANGE_FIELD, context)

        account = cls(account_key, name, receive_chain, change_chain)
        account._logger.info("restored account")
        return account

    def to_data(self) -> AccountData:
        return {
            "name": self._name,
            "receive": self._receive_chain.to_data(),
            "change": self._change_chain.to_data(),
        }

    def name(self) -> str:
        return self._name

    def set_name(self, name: str) -> None:
        self._name = name
        self._logger = logs.get_logger("account[{}]".format(name))

    def xpubstr(self) -> str:
        return xpub_string(self._account_key)

    def get_account_key(self) -> BIP32Key:
        return self._account_key

    def get_receive_chain(self) -> HDChain:
        return self._receive_chain

    def get_change_chain(self) -> HDChain:
        return self._change_chain

    def gather_all_keys(self, creation_time: Optional[int], keys: list[ImportedKey]) -> None:
        self._receive_chain.gather_all_keys(creation_time, keys)
        self._change_chain.gather_all_keys(creation_time, keys)

    def apply_output(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes], value: int,
            is_available: bool) -> None:
        self._receive_chain.apply_output(pubkey, pubkeyhash, value, is_available)
        self._change_chain.apply_output(pubkey, pubkeyhash, value, is_available)

    def apply_input(self, pubkey: Optional[bytes], value: int) -> None:
        self._receive_chain.apply_input(pubkey, value)
        self._change_chain.apply_input(pubkey, value)

    def clear_balance(self) -> None:
        self._receive_chain.clear_balance()
        self._change_chain.clear_balance()

    def has_pubkey(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes]) -> bool:
        if self._receive_chain.has_pubkey(pubkey, pubkeyhash):
            return True
        return self._change_chain.has_pubkey(pubkey, pubkeyhash)

    def balance(self) -> int:
        return self._receive_chain.balance() + self._change_chain.balance()

    def available(self) -> int:
        return self._receive_chain.available() + self._change_chain.available()

    def log_balance(self) -> None:
        self._logger.info("balance %d, available %d", self.balance(), self.available())
        self._receive_chain.log_balance()
        self._change_chain.log_balance()

    def next_receive_address(self) -> HDAddress:
        return self._receive_chain.next_unused_address()

    def next_change_address(self) -> HDAddress:
        return self._change_chain.next_unused_address()

    def fresh_receive_addresses(self, count: int) -> list[HDAddress]:
        return self._receive_chain.fresh_addresses(count)

    def ensure_margins(self, import_keys: KeyImportFunction) -> int:
        '''Returns the largest number of addresses added to either chain.'''
        receive_added = self._receive_chain.ensure_margins(import_keys)
        change_added = self._change_chain.ensure_margins(import_keys)
        return max(receive_added, change_added)

    def find_address(self, address: P2PKH_Address) -> Optional[HDAddressDescription]:
        description = self._receive_chain.find_address(address)
        if description is None:
            description = self._change_chain.find_address(address)
        if description is not None:
            description = description._replace(account=self)
        return description

    def coin_selector(self, delegate: Optional[CoinChooserBase]=None) -> "AccountCoinSelector":
        return AccountCoinSelector(self, delegate)

    def __repr__(self) -> str:
        return "HDAccount(name={!r}, receive={}, change={})".format(self._name,
            self._receive_chain.num_addrs(), self._change_chain.num_addrs())


class AccountCoinSelector:
    '''Restricts the candidate outputs to those owned by one account before delegating.

    The delegate does all the real work, this only guarantees that what it is given belongs to
    the account.
    '''

    def __init__(self, account: HDAccount, delegate: Optional[CoinChooserBase]=None) -> None:
        self._account = account
        self._delegate = delegate if delegate is not None else CoinChooserPrivacy()

    def filter_candidates(self, candidates: Iterable[SpendableOutput]) -> list[SpendableOutput]:
        filtered: list[SpendableOutput] = []
        for candidate in candidates:
            try:
                pubkey, pubkeyhash = output_script_identity(candidate.script_pubkey)
            except ScriptParseError:
                logger.warning("skipping candidate %s:%d, unrecognised output script",
                    hash_to_hex_str(candidate.tx_hash), candidate.out_index)
                continue
            if self._account.has_pubkey(pubkey, pubkeyhash):
                filtered.append(candidate)
        return filtered

    def select(self, target: int, candidates: Iterable[SpendableOutput]) -> CoinSelection:
        filtered = self.filter_candidates(candidates)
        logger.debug("%s: %d candidate coins", self._account.name(), len(filtered))
        return self._delegate.select(target, filtered)
