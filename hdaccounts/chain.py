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

import time
from typing import cast, Mapping, Optional, Sequence

from bitcoinx import P2PKH_Address

from .address import read_field, HDAddress
from .constants import (CHAIN_ADDRESSES_FIELD, CHAIN_IS_RECEIVE_FIELD, CHAIN_NAME_FIELD,
    CHANGE_SUBPATH, DerivationPath, derivation_path_text, DESIRED_MARGIN, MAX_UNUSED_GAP,
    RECEIVING_SUBPATH)
from .exceptions import AddressExhaustedError, DerivationError, UnsafeExtendError
from .keystore import derive_child_key
from .logs import logs
from .types import AddressData, BIP32Key, ChainData, HDAddressDescription, ImportedKey, \
    KeyImportFunction


logger = logs.get_logger("chain")


def chain_subpath(is_receive: bool) -> DerivationPath:
    return RECEIVING_SUBPATH if is_receive else CHANGE_SUBPATH


class HDChain:
    '''An append-only sequence of addresses under one branch of an account key.

    The position of an address in the sequence is its derivation index, so addresses are only
    ever appended. A chain can always be rebuilt from the account key and the persisted indexes.
    '''

    def __init__(self, account_key: BIP32Key, is_receive: bool, name: str) -> None:
        self._is_receive = is_receive
        self._name = name
        self._subpath = chain_subpath(is_receive)
        self._chain_key = derive_child_key(account_key, self._subpath[0])
        self._addresses: list[HDAddress] = []

    @classmethod
    def create(cls, account_key: BIP32Key, is_receive: bool, name: str) -> "HDChain":
        chain = cls(account_key, is_receive, name)
        for index in range(DESIRED_MARGIN):
            chain._addresses.append(HDAddress.create(chain._chain_key, index))
        logger.info("created chain %s (%s)", name, chain.get_subpath_text())
        return chain

    @classmethod
    def restore(cls, account_key: BIP32Key, data: ChainData) -> "HDChain":
        mapping = cast(Mapping[str, object], data)
        name = cast(str, read_field(mapping, CHAIN_NAME_FIELD, str, "chain"))
        context = "chain {}".format(name)
        is_receive = cast(bool, read_field(mapping, CHAIN_IS_RECEIVE_FIELD, bool, context))
        address_entries = cast(list[AddressData],
            read_field(mapping, CHAIN_ADDRESSES_FIELD, list, context))

        chain = cls(account_key, is_receive, name)
        for position, address_data in enumerate(address_entries):
            address = HDAddress.restore(chain._chain_key, address_data)
            # The index is part of the derivation path, a gap or reordering would mean the
            # balances belong to different keys than the ones we derive.
            if address.index != position:
                raise DerivationError("{} has address index {} at position {}".format(
                    context, address.index, position))
            chain._addresses.append(address)
        logger.info("restored chain %s (%s) with %d addresses", name, chain.get_subpath_text(),
            len(chain._addresses))
        return chain

    def to_data(self) -> ChainData:
        return {
            "name": self._name,
            "isReceive": self._is_receive,
            "addrs": [ address.to_data() for address in self._addresses ],
        }

    @staticmethod
    def max_safe_extend() -> int:
        return DESIRED_MARGIN - MAX_UNUSED_GAP

    def name(self) -> str:
        return self._name

    def is_receive(self) -> bool:
        return self._is_receive

    def get_subpath(self) -> DerivationPath:
        return self._subpath

    def get_subpath_text(self) -> str:
        return derivation_path_text(self._subpath)

    def get_chain_key(self) -> BIP32Key:
        return self._chain_key

    def get_addresses(self) -> Sequence[HDAddress]:
        return tuple(self._addresses)

    def num_addrs(self) -> int:
        return len(self._addresses)

    def gather_all_keys(self, creation_time: Optional[int], keys: list[ImportedKey]) -> None:
        for address in self._addresses:
            address.gather_key(creation_time, keys)

    def apply_output(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes], value: int,
            is_available: bool) -> None:
        for address in self._addresses:
            address.apply_output(pubkey, pubkeyhash, value, is_available)

    def apply_input(self, pubkey: Optional[bytes], value: int) -> None:
        for address in self._addresses:
            address.apply_input(pubkey, value)

    def clear_balance(self) -> None:
        for address in self._addresses:
            address.clear_balance()

    def balance(self) -> int:
        return sum(address.get_balance() for address in self._addresses)

    def available(self) -> int:
        return sum(address.get_available() for address in self._addresses)

    def log_balance(self) -> None:
        for address in self._addresses:
            address.log_balance()

    def next_unused_address(self) -> HDAddress:
        for address in self._addresses:
            if address.is_unused():
                return address
        raise AddressExhaustedError()

    def has_pubkey(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes]) -> bool:
        return any(address.is_match(pubkey, pubkeyhash) for address in self._addresses)

    def find_address(self, address: P2PKH_Address) -> Optional[HDAddressDescription]:
        for hd_address in self._addresses:
            if hd_address.match_address(address):
                # The owning account fills in the account.
                return HDAddressDescription(self, hd_address)
        return None

    def margin_size(self) -> int:
        '''The number of consecutive unused addresses at the end of the chain.

        Unused addresses below the highest used address do not count.
        '''
        count = 0
        for address in reversed(self._addresses):
            if not address.is_unused():
                break
            count += 1
        return count

    def fresh_addresses(self, count: int) -> list[HDAddress]:
        '''Hand out `count` unused addresses from the start of the trailing margin.

        Raises `UnsafeExtendError` if doing so would leave less than `MAX_UNUSED_GAP` unused
        addresses beyond them, `ensure_margins` has to be called first in that case.
        '''
        if count < 0:
            raise ValueError("negative address count {}".format(count))
        margin = self.margin_size()
        if count > self.max_safe_extend() or margin - count < MAX_UNUSED_GAP:
            raise UnsafeExtendError(count, margin, MAX_UNUSED_GAP)
        start = len(self._addresses) - margin
        return self._addresses[start:start + count]

    def ensure_margins(self, import_keys: KeyImportFunction) -> int:
        '''Top the trailing margin back up to `DESIRED_MARGIN` unused addresses.

        The new keys are passed to `import_keys` as one batch, and the chain is left unchanged
        if it raises. Returns the number of addresses added.
        '''
        margin = self.margin_size()
        if margin >= DESIRED_MARGIN:
            return 0

        add_count = DESIRED_MARGIN - margin
        logger.info("%s (%s) expanding margin, adding %d addresses", self._name,
            self.get_subpath_text(), add_count)

        now = int(time.time())
        keys: list[ImportedKey] = []
        new_addresses: list[HDAddress] = []
        first_index = len(self._addresses)
        for index in range(first_index, first_index + add_count):
            address = HDAddress.create(self._chain_key, index, now)
            new_addresses.append(address)
            address.gather_key(now, keys)
        logger.debug("importing %d keys", len(keys))
        # Only grow the chain once the engine holds the keys.
        import_keys(keys, now)
        self._addresses.extend(new_addresses)
        return add_count
