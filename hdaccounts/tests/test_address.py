import pytest

from bitcoinx import P2PKH_Address, PublicKey

from hdaccounts.address import HDAddress, read_field
from hdaccounts.bitcoin import address_from_string, is_address_valid
from hdaccounts.exceptions import DerivationError, SerializationError
from hdaccounts.keystore import derive_child_key
from hdaccounts.networks import Net, SVTestnet


@pytest.fixture
def chain_key(account_key):
    return derive_child_key(account_key, 0)


def test_create(chain_key) -> None:
    address = HDAddress.create(chain_key, 7)
    assert address.index == 7
    assert address.get_balance() == 0
    assert address.get_available() == 0
    assert not address.is_ever_used()
    assert address.is_unused()
    assert address.creation_time is None
    child_key = derive_child_key(chain_key, 7)
    assert address.public_key_bytes == child_key.public_key.to_bytes(compressed=True)
    assert address.public_key_hash == child_key.public_key.hash160()


def test_watch_only_matches_private(account_key) -> None:
    private_address = HDAddress.create(derive_child_key(account_key, 0), 2)
    public_address = HDAddress.create(derive_child_key(account_key.public_key, 0), 2)
    assert private_address.public_key_bytes == public_address.public_key_bytes
    assert private_address.to_string() == public_address.to_string()


def test_is_match(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    other = HDAddress.create(chain_key, 1)
    assert address.is_match(address.public_key_bytes, None)
    assert address.is_match(None, address.public_key_hash)
    assert address.is_match(other.public_key_bytes, address.public_key_hash)
    assert not address.is_match(None, None)
    assert not address.is_match(other.public_key_bytes, other.public_key_hash)


def test_apply_output_available(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    address.apply_output(address.public_key_bytes, None, 1000, True)
    address.apply_output(None, address.public_key_hash, 500, False)
    assert address.get_balance() == 1500
    assert address.get_available() == 1000
    assert address.is_ever_used()
    assert not address.is_unused()


def test_apply_output_other_key(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    other = HDAddress.create(chain_key, 1)
    address.apply_output(other.public_key_bytes, other.public_key_hash, 1000, True)
    assert address.get_balance() == 0
    assert address.is_unused()


def test_apply_input(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    address.apply_output(None, address.public_key_hash, 1000, True)
    address.apply_input(address.public_key_bytes, 400)
    assert address.get_available() == 600
    assert address.get_balance() == 1000

    # Inputs are only matched by public key.
    address.apply_input(None, 100)
    assert address.get_available() == 600


def test_clear_balance_keeps_usage(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    address.apply_output(None, address.public_key_hash, 1000, True)
    address.clear_balance()
    assert address.get_balance() == 0
    assert address.get_available() == 0
    assert address.is_ever_used()
    assert not address.is_unused()


def test_get_address(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    p2pkh = address.get_address()
    assert isinstance(p2pkh, P2PKH_Address)
    assert p2pkh.hash160() == address.public_key_hash
    assert address.to_string().startswith("1")
    assert address.match_address(p2pkh)
    assert not address.match_address(HDAddress.create(chain_key, 1).get_address())
    assert not address.match_address(None)


def test_to_string_testnet(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    Net.set_to(SVTestnet)
    assert address.to_string()[0] in "mn"


def test_to_data(chain_key) -> None:
    address = HDAddress.create(chain_key, 3)
    address.apply_output(address.public_key_bytes, None, 250, True)
    assert address.to_data() == { "index": 3, "balance": 250, "available": 250,
        "everUsed": True }


def test_restore(chain_key) -> None:
    address = HDAddress.restore(chain_key, { "index": 4, "balance": 10, "available": 5,
        "everUsed": True })
    assert address.index == 4
    assert address.get_balance() == 10
    assert address.get_available() == 5
    assert address.is_ever_used()
    assert address.public_key_bytes == HDAddress.create(chain_key, 4).public_key_bytes


@pytest.mark.parametrize("missing_field", [ "index", "balance", "available", "everUsed" ])
def test_restore_missing_field(chain_key, missing_field) -> None:
    data = { "index": 4, "balance": 10, "available": 5, "everUsed": True }
    del data[missing_field]
    with pytest.raises(SerializationError) as e:
        HDAddress.restore(chain_key, data)
    assert e.value.field_name == missing_field


@pytest.mark.parametrize("field_name,value", [
    ("index", "4"), ("balance", 1.5), ("available", True), ("everUsed", 1) ])
def test_restore_wrong_type(chain_key, field_name, value) -> None:
    data = { "index": 4, "balance": 10, "available": 5, "everUsed": True }
    data[field_name] = value
    with pytest.raises(SerializationError):
        HDAddress.restore(chain_key, data)


def test_restore_negative_index(chain_key) -> None:
    with pytest.raises(DerivationError):
        HDAddress.restore(chain_key, { "index": -1, "balance": 0, "available": 0,
            "everUsed": False })


def test_read_field_not_a_mapping() -> None:
    with pytest.raises(SerializationError) as e:
        read_field(None, "index", int, "address")
    assert str(e.value) == "address: missing or invalid field 'index'"


def test_gather_key(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    keys = []
    address.gather_key(1600000000, keys)
    assert len(keys) == 1
    imported_key = keys[0]
    assert imported_key.key is address.key
    assert isinstance(imported_key.public_key, PublicKey)
    assert imported_key.public_key.to_bytes(compressed=True) == address.public_key_bytes
    assert imported_key.creation_time == 1600000000


def test_address_from_string(chain_key) -> None:
    address = HDAddress.create(chain_key, 0)
    text = address.to_string()
    assert is_address_valid(text)
    assert address_from_string(text) == address.get_address()
    assert not is_address_valid(text[:-1] + ("1" if text[-1] != "1" else "2"))
    assert not is_address_valid("")
