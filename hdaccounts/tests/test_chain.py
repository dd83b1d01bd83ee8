import pytest

from hdaccounts.chain import HDChain
from hdaccounts.constants import DESIRED_MARGIN, MAX_UNUSED_GAP
from hdaccounts.exceptions import (AddressExhaustedError, DerivationError, SerializationError,
    UnsafeExtendError)
from hdaccounts.keystore import derive_child_key


def use_address(chain: HDChain, index: int, value: int=1000) -> None:
    address = chain.get_addresses()[index]
    chain.apply_output(None, address.public_key_hash, value, True)


@pytest.fixture
def receive_chain(account_key) -> HDChain:
    return HDChain.create(account_key, True, "Receive")


@pytest.fixture
def change_chain(account_key) -> HDChain:
    return HDChain.create(account_key, False, "Change")


def test_create(receive_chain) -> None:
    assert receive_chain.num_addrs() == DESIRED_MARGIN
    assert [ a.index for a in receive_chain.get_addresses() ] == list(range(DESIRED_MARGIN))
    assert all(a.is_unused() for a in receive_chain.get_addresses())
    assert receive_chain.margin_size() == DESIRED_MARGIN
    assert receive_chain.balance() == 0
    assert receive_chain.available() == 0


def test_subpaths(account_key, receive_chain, change_chain) -> None:
    assert receive_chain.get_subpath() == (0,)
    assert change_chain.get_subpath() == (1,)
    assert receive_chain.get_subpath_text() == "0"
    assert receive_chain.is_receive()
    assert not change_chain.is_receive()
    assert receive_chain.get_chain_key().to_extended_key_string() == \
        derive_child_key(account_key, 0).to_extended_key_string()
    receive_keys = { a.public_key_bytes for a in receive_chain.get_addresses() }
    change_keys = { a.public_key_bytes for a in change_chain.get_addresses() }
    assert not receive_keys & change_keys


def test_max_safe_extend() -> None:
    assert HDChain.max_safe_extend() == DESIRED_MARGIN - MAX_UNUSED_GAP == 24


def test_margin_size_ignores_interior_gaps(receive_chain) -> None:
    use_address(receive_chain, 0)
    assert receive_chain.margin_size() == DESIRED_MARGIN - 1
    use_address(receive_chain, 5)
    assert receive_chain.margin_size() == DESIRED_MARGIN - 6
    use_address(receive_chain, 2)
    assert receive_chain.margin_size() == DESIRED_MARGIN - 6


def test_margin_size_after_clear_balance(receive_chain) -> None:
    use_address(receive_chain, 9)
    receive_chain.clear_balance()
    assert receive_chain.balance() == 0
    assert receive_chain.margin_size() == DESIRED_MARGIN - 10


def test_next_unused_address(receive_chain) -> None:
    assert receive_chain.next_unused_address().index == 0
    use_address(receive_chain, 0)
    use_address(receive_chain, 2)
    assert receive_chain.next_unused_address().index == 1


def test_next_unused_address_exhausted(receive_chain) -> None:
    for index in range(DESIRED_MARGIN):
        use_address(receive_chain, index)
    with pytest.raises(AddressExhaustedError):
        receive_chain.next_unused_address()


def test_ensure_margins_is_idempotent(receive_chain, import_keys) -> None:
    assert receive_chain.ensure_margins(import_keys) == 0
    assert receive_chain.num_addrs() == DESIRED_MARGIN
    assert import_keys.calls == []


def test_ensure_margins_extends(receive_chain, import_keys) -> None:
    original = [ a.public_key_bytes for a in receive_chain.get_addresses() ]
    for index in range(30):
        use_address(receive_chain, index)
    assert receive_chain.margin_size() == 2

    assert receive_chain.ensure_margins(import_keys) == 30
    assert receive_chain.num_addrs() == 62
    assert receive_chain.margin_size() == DESIRED_MARGIN
    addresses = receive_chain.get_addresses()
    assert [ a.index for a in addresses ] == list(range(62))
    assert [ a.public_key_bytes for a in addresses[:DESIRED_MARGIN] ] == original

    assert len(import_keys.calls) == 1
    keys, creation_time = import_keys.calls[0]
    assert len(keys) == 30
    assert [ k.public_key.to_bytes(compressed=True) for k in keys ] == \
        [ a.public_key_bytes for a in addresses[DESIRED_MARGIN:] ]
    assert all(k.creation_time == creation_time for k in keys)
    assert all(a.creation_time == creation_time for a in addresses[DESIRED_MARGIN:])

    assert receive_chain.ensure_margins(import_keys) == 0
    assert len(import_keys.calls) == 1


def test_ensure_margins_failed_import_is_retried(receive_chain, import_keys) -> None:
    for index in range(10):
        use_address(receive_chain, index)

    def failing_import(keys, creation_time):
        raise OSError("key store unavailable")

    with pytest.raises(OSError):
        receive_chain.ensure_margins(failing_import)
    assert receive_chain.num_addrs() == DESIRED_MARGIN
    assert receive_chain.margin_size() == DESIRED_MARGIN - 10

    assert receive_chain.ensure_margins(import_keys) == 10
    assert len(import_keys.imported_keys()) == 10
    assert receive_chain.num_addrs() == DESIRED_MARGIN + 10
    assert [ k.public_key.to_bytes(compressed=True) for k in import_keys.imported_keys() ] == \
        [ a.public_key_bytes for a in receive_chain.get_addresses()[DESIRED_MARGIN:] ]


def test_ensure_margins_fully_used(receive_chain, import_keys) -> None:
    for index in range(DESIRED_MARGIN):
        use_address(receive_chain, index)
    assert receive_chain.ensure_margins(import_keys) == DESIRED_MARGIN
    assert receive_chain.next_unused_address().index == DESIRED_MARGIN


def test_fresh_addresses(receive_chain) -> None:
    use_address(receive_chain, 3)
    addresses = receive_chain.fresh_addresses(5)
    assert [ a.index for a in addresses ] == [ 4, 5, 6, 7, 8 ]
    assert receive_chain.fresh_addresses(0) == []


def test_fresh_addresses_max_safe_extend(receive_chain) -> None:
    addresses = receive_chain.fresh_addresses(HDChain.max_safe_extend())
    assert len(addresses) == 24
    with pytest.raises(UnsafeExtendError):
        receive_chain.fresh_addresses(HDChain.max_safe_extend() + 1)


def test_fresh_addresses_unsafe(receive_chain, import_keys) -> None:
    for index in range(20):
        use_address(receive_chain, index)
    with pytest.raises(UnsafeExtendError) as e:
        receive_chain.fresh_addresses(5)
    assert e.value.margin_size == 12
    assert e.value.minimum_gap == MAX_UNUSED_GAP
    assert len(receive_chain.fresh_addresses(4)) == 4

    receive_chain.ensure_margins(import_keys)
    assert [ a.index for a in receive_chain.fresh_addresses(5) ] == list(range(20, 25))


def test_fresh_addresses_negative(receive_chain) -> None:
    with pytest.raises(ValueError):
        receive_chain.fresh_addresses(-1)


def test_apply_input(receive_chain) -> None:
    address = receive_chain.get_addresses()[1]
    receive_chain.apply_output(address.public_key_bytes, None, 800, True)
    receive_chain.apply_input(address.public_key_bytes, 300)
    assert receive_chain.balance() == 800
    assert receive_chain.available() == 500


def test_has_pubkey(receive_chain, change_chain) -> None:
    address = change_chain.get_addresses()[0]
    assert change_chain.has_pubkey(address.public_key_bytes, None)
    assert change_chain.has_pubkey(None, address.public_key_hash)
    assert not receive_chain.has_pubkey(address.public_key_bytes, address.public_key_hash)


def test_find_address(receive_chain, change_chain) -> None:
    address = receive_chain.get_addresses()[6]
    description = receive_chain.find_address(address.get_address())
    assert description is not None
    assert description.chain is receive_chain
    assert description.address is address
    assert description.account is None
    assert change_chain.find_address(address.get_address()) is None


def test_gather_all_keys(receive_chain) -> None:
    keys = []
    receive_chain.gather_all_keys(None, keys)
    assert len(keys) == DESIRED_MARGIN
    assert keys[0].key is receive_chain.get_addresses()[0].key


def test_restore_round_trip(account_key, receive_chain, import_keys) -> None:
    use_address(receive_chain, 30, 5000)
    receive_chain.ensure_margins(import_keys)
    data = receive_chain.to_data()
    assert data["name"] == "Receive"
    assert data["isReceive"] is True
    assert len(data["addrs"]) == receive_chain.num_addrs()

    restored = HDChain.restore(account_key, data)
    assert restored.to_data() == data
    assert restored.margin_size() == receive_chain.margin_size()
    assert [ a.public_key_bytes for a in restored.get_addresses() ] == \
        [ a.public_key_bytes for a in receive_chain.get_addresses() ]


def test_restore_watch_only(account_key, change_chain) -> None:
    restored = HDChain.restore(account_key.public_key, change_chain.to_data())
    assert [ a.public_key_bytes for a in restored.get_addresses() ] == \
        [ a.public_key_bytes for a in change_chain.get_addresses() ]


def test_restore_index_gap(account_key, receive_chain) -> None:
    data = receive_chain.to_data()
    del data["addrs"][3]
    with pytest.raises(DerivationError):
        HDChain.restore(account_key, data)


@pytest.mark.parametrize("missing_field", [ "name", "isReceive", "addrs" ])
def test_restore_missing_field(account_key, receive_chain, missing_field) -> None:
    data = receive_chain.to_data()
    del data[missing_field]
    with pytest.raises(SerializationError):
        HDChain.restore(account_key, data)


def test_restore_bad_address(account_key, receive_chain) -> None:
    data = receive_chain.to_data()
    del data["addrs"][0]["everUsed"]
    with pytest.raises(SerializationError):
        HDChain.restore(account_key, data)
