from __future__ import annotations
from typing import Callable, NamedTuple, Optional, TYPE_CHECKING, Union

from bitcoinx import BIP32PrivateKey, BIP32PublicKey, pack_le_uint32, PublicKey
from typing_extensions import TypedDict


if TYPE_CHECKING:
    from .account import HDAccount
    from .address import HDAddress
    from .chain import HDChain


BIP32Key = Union[BIP32PrivateKey, BIP32PublicKey]


class AddressData(TypedDict):
    index: int
    balance: int
    available: int
    everUsed: bool


class ChainData(TypedDict):
    name: str
    isReceive: bool
    addrs: list[AddressData]


class AccountData(TypedDict):
    name: str
    receive: ChainData
    change: ChainData


class WalletData(TypedDict):
    accounts: list[AccountData]


class ImportedKey(NamedTuple):
    '''A derived key handed to the wallet engine for its key store.

    `key` is a private key if the account key was private, otherwise it is the public key and the
    engine can only watch it.
    '''
    key: BIP32Key
    public_key: PublicKey
    creation_time: Optional[int]


KeyImportFunction = Callable[[list[ImportedKey], int], None]


class HDAddressDescription(NamedTuple):
    '''Where an address lives in the wallet, built when it is looked up.

    The account is filled in by the account that owns the chain, the chain does not know it.
    '''
    chain: HDChain
    address: HDAddress
    account: Optional[HDAccount] = None


class SpendableOutput(NamedTuple):
    tx_hash: bytes
    out_index: int
    value: int
    script_pubkey: bytes

    def prevout_bytes(self) -> bytes:
        return self.tx_hash + pack_le_uint32(self.out_index)


class CoinSelection(NamedTuple):
    value_gathered: int
    gathered: list[SpendableOutput]
