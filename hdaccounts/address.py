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

from typing import cast, Mapping, Optional

from bitcoinx import P2PKH_Address

from .constants import (ADDRESS_AVAILABLE_FIELD, ADDRESS_BALANCE_FIELD, ADDRESS_EVER_USED_FIELD,
    ADDRESS_INDEX_FIELD)
from .exceptions import DerivationError, SerializationError
from .keystore import derive_child_key, public_key_identity, public_key_of
from .logs import logs
from .networks import Net
from .types import AddressData, BIP32Key, ImportedKey


logger = logs.get_logger("address")


def read_field(data: Mapping[str, object], field_name: str, field_type: type,
        context: str) -> object:
    try:
        value = data[field_name]
    except (KeyError, TypeError):
        raise SerializationError(field_name, context) from None
    # `bool` is an `int` subclass, a flag is not an acceptable balance or index.
    if not isinstance(value, field_type) or (field_type is int and isinstance(value, bool)):
        raise SerializationError(field_name, context)
    return value


class HDAddress:
    '''One derived key slot in a chain and the activity observed for it.

    The public key and its hash are a function of the chain key and the index, and are never
    persisted. Only the balances and the usage flag are state.
    '''

    def __init__(self, chain_key: BIP32Key, index: int, balance: int=0, available: int=0,
            ever_used: bool=False, creation_time: Optional[int]=None) -> None:
        self._index = index
        self._key, self._public_key_bytes, self._public_key_hash = self.derive(chain_key, index)
        self._balance = balance
        self._available = available
        self._ever_used = ever_used
        self._creation_time = creation_time

    @staticmethod
    def derive(chain_key: BIP32Key, index: int) -> tuple[BIP32Key, bytes, bytes]:
        key = derive_child_key(chain_key, index)
        public_key_bytes, public_key_hash = public_key_identity(key)
        return key, public_key_bytes, public_key_hash

    @classmethod
    def create(cls, chain_key: BIP32Key, index: int,
            creation_time: Optional[int]=None) -> "HDAddress":
        return cls(chain_key, index, creation_time=creation_time)

    @classmethod
    def restore(cls, chain_key: BIP32Key, data: AddressData) -> "HDAddress":
        index = cast(int, read_field(data, ADDRESS_INDEX_FIELD, int, "address"))
        context = "address {}".format(index)
        if index < 0:
            raise DerivationError("negative address index {}".format(index))
        balance = cast(int, read_field(data, ADDRESS_BALANCE_FIELD, int, context))
        available = cast(int, read_field(data, ADDRESS_AVAILABLE_FIELD, int, context))
        ever_used = cast(bool, read_field(data, ADDRESS_EVER_USED_FIELD, bool, context))
        return cls(chain_key, index, balance, available, ever_used)

    def to_data(self) -> AddressData:
        return {
            "index": self._index,
            "balance": self._balance,
            "available": self._available,
            "everUsed": self._ever_used,
        }

    @property
    def index(self) -> int:
        return self._index

    @property
    def key(self) -> BIP32Key:
        return self._key

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_key_bytes

    @property
    def public_key_hash(self) -> bytes:
        return self._public_key_hash

    @property
    def creation_time(self) -> Optional[int]:
        return self._creation_time

    def get_balance(self) -> int:
        return self._balance

    def get_available(self) -> int:
        return self._available

    def is_ever_used(self) -> bool:
        return self._ever_used

    def get_address(self) -> P2PKH_Address:
        return P2PKH_Address(self._public_key_hash, Net.COIN)

    def to_string(self) -> str:
        return cast(str, self.get_address().to_string())

    def is_match(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes]) -> bool:
        # Pay to public key outputs carry the key, pay to public key hash outputs the hash.
        if pubkey is not None and pubkey == self._public_key_bytes:
            return True
        return pubkeyhash is not None and pubkeyhash == self._public_key_hash

    def match_address(self, address: P2PKH_Address) -> bool:
        if not isinstance(address, P2PKH_Address):
            return False
        return cast(bytes, address.hash160()) == self._public_key_hash

    def apply_output(self, pubkey: Optional[bytes], pubkeyhash: Optional[bytes], value: int,
            is_available: bool) -> None:
        if not self.is_match(pubkey, pubkeyhash):
            return
        self._balance += value
        if is_available:
            self._available += value
        self._ever_used = True

    def apply_input(self, pubkey: Optional[bytes], value: int) -> None:
        # The engine only reports inputs spending outputs it has already applied.
        if pubkey is None or pubkey != self._public_key_bytes:
            return
        self._available -= value
        self._ever_used = True

    def clear_balance(self) -> None:
        # Usage is history, it survives a balance recalculation.
        self._balance = 0
        self._available = 0

    def is_unused(self) -> bool:
        return not self._ever_used and self._balance == 0 and self._available == 0

    def gather_key(self, creation_time: Optional[int], keys: list[ImportedKey]) -> None:
        keys.append(ImportedKey(self._key, public_key_of(self._key), creation_time))

    def log_balance(self) -> None:
        if self._balance != 0 or self._available != 0:
            logger.info("%s %d balance %d, available %d", self.to_string(), self._index,
                self._balance, self._available)

    def __repr__(self) -> str:
        return "HDAddress(index={}, balance={}, available={}, ever_used={})".format(
            self._index, self._balance, self._available, self._ever_used)
