from enum import IntEnum


DerivationPath = tuple[int, ...]


def derivation_path_text(derivation_path: DerivationPath) -> str:
    return "/".join(str(n) for n in derivation_path)


## Chains

RECEIVING_SUBPATH: DerivationPath = (0,)
CHANGE_SUBPATH: DerivationPath = (1,)

RECEIVING_CHAIN_NAME = "Receive"
CHANGE_CHAIN_NAME = "Change"

# The number of trailing unused addresses each chain is topped up to.
DESIRED_MARGIN = 32
# The number of trailing unused addresses that must remain after addresses are handed out.
MAX_UNUSED_GAP = 8

# BIP32 child indexes at or above this are hardened and need the parent private key.
HARDENED_INDEX = 1 << 31


class ScriptType(IntEnum):
    NONE = 0
    P2PKH = 2
    P2PK = 3


## Persisted document field names

ACCOUNT_NAME_FIELD = "name"
ACCOUNT_RECEIVE_FIELD = "receive"
ACCOUNT_CHANGE_FIELD = "change"

CHAIN_NAME_FIELD = "name"
CHAIN_IS_RECEIVE_FIELD = "isReceive"
CHAIN_ADDRESSES_FIELD = "addrs"

ADDRESS_INDEX_FIELD = "index"
ADDRESS_BALANCE_FIELD = "balance"
ADDRESS_AVAILABLE_FIELD = "available"
ADDRESS_EVER_USED_FIELD = "everUsed"

WALLET_ACCOUNTS_FIELD = "accounts"
