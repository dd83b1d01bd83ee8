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

'''The BIP32 derivation primitive that the account bookkeeping sits on.

Derivation is a pure `(parent_key, child_index) -> child_key` function called on demand. Only
child indexes are ever persisted, keys are always re-derived from the account key.
'''

from typing import cast

from bitcoinx import (
    BIP32PrivateKey, BIP32PublicKey, Base58Error, bip32_decompose_chain_string,
    bip32_key_from_string, hash160, PublicKey
)

from .constants import HARDENED_INDEX
from .exceptions import DerivationError
from .logs import logs
from .networks import Net
from .types import BIP32Key


logger = logs.get_logger("keystore")


def is_bip32_key(key: object) -> bool:
    return isinstance(key, (BIP32PrivateKey, BIP32PublicKey))


def derive_child_key(parent_key: BIP32Key, child_index: int) -> BIP32Key:
    if not is_bip32_key(parent_key):
        raise DerivationError("cannot derive from a {}".format(type(parent_key).__name__))
    if type(child_index) is not int or not 0 <= child_index < 1 << 32:
        raise DerivationError("invalid child index {!r}".format(child_index))
    if child_index >= HARDENED_INDEX and isinstance(parent_key, BIP32PublicKey):
        raise DerivationError("hardened child {} requires a private parent key".format(
            child_index))
    try:
        return cast(BIP32Key, parent_key.child_safe(child_index))
    except ValueError as e:
        raise DerivationError(str(e)) from e


def public_key_of(key: BIP32Key) -> PublicKey:
    if isinstance(key, BIP32PrivateKey):
        return key.public_key
    return key


def public_key_identity(key: BIP32Key) -> tuple[bytes, bytes]:
    '''Returns the compressed public key bytes and their hash160.'''
    public_key_bytes = cast(bytes, public_key_of(key).to_bytes(compressed=True))
    return public_key_bytes, cast(bytes, hash160(public_key_bytes))


def xpub_string(key: BIP32Key) -> str:
    return cast(str, public_key_of(key).to_extended_key_string())


def bip44_derivation(account_id: int) -> str:
    return "m/44'/%d'/%d'" % (Net.BIP44_COIN_TYPE, int(account_id))


def account_key_from_text(text: str) -> BIP32Key:
    '''Parse an extended public or private key, as exported by any BIP32 wallet.'''
    try:
        key = bip32_key_from_string(text)
    except (Base58Error, ValueError) as e:
        raise DerivationError("invalid extended key: {}".format(e)) from e
    if not is_bip32_key(key):
        raise DerivationError("not an extended key")
    return cast(BIP32Key, key)


def account_key_from_seed(bip32_seed: bytes, account_id: int=0) -> BIP32PrivateKey:
    derivation_text = bip44_derivation(account_id)
    private_key = BIP32PrivateKey.from_seed(bip32_seed, Net.COIN)
    for n in bip32_decompose_chain_string(derivation_text):
        private_key = private_key.child_safe(n)
    logger.debug("derived account key %s", derivation_text)
    return cast(BIP32PrivateKey, private_key)
