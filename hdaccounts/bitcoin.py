from __future__ import annotations
from typing import cast, Optional, Union

from bitcoinx import (Address, classify_output_script, P2PK_Output, P2PKH_Address, Script,
    TruncatedScriptError)

from .constants import ScriptType
from .exceptions import ScriptParseError
from .networks import Net


COIN = 100000000


def address_from_string(address: str) -> Address:
    return Address.from_string(address, Net.COIN)


def is_address_valid(address: str) -> bool:
    try:
        address_from_string(address)
        return True
    except ValueError:
        return False


def classify_script(script_pubkey: Union[bytes, Script]) -> tuple[ScriptType, object]:
    try:
        template = classify_output_script(Script(bytes(script_pubkey)), Net.COIN)
    except (TruncatedScriptError, ValueError, TypeError) as e:
        raise ScriptParseError("unparseable output script: {}".format(e)) from e
    if isinstance(template, P2PK_Output):
        return ScriptType.P2PK, template
    if isinstance(template, P2PKH_Address):
        return ScriptType.P2PKH, template
    return ScriptType.NONE, template


def output_script_identity(script_pubkey: Union[bytes, Script]) \
        -> tuple[Optional[bytes], Optional[bytes]]:
    '''Returns the `(public_key, public_key_hash)` an output script pays to.

    Pay-to-public-key outputs yield the public key and no hash, pay-to-public-key-hash outputs
    the hash and no public key. Anything else raises `ScriptParseError`.
    '''
    script_type, template = classify_script(script_pubkey)
    if script_type == ScriptType.P2PK:
        return cast(bytes, cast(P2PK_Output, template).public_key.to_bytes(compressed=True)), None
    if script_type == ScriptType.P2PKH:
        return None, cast(bytes, cast(P2PKH_Address, template).hash160())
    raise ScriptParseError("output script is not P2PK or P2PKH: {}".format(
        bytes(script_pubkey).hex()))
