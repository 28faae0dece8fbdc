"""
Unit tests for CredentialStore.

Covers:
    - lookup (found & not found)
    - replace (wholesale swap, idempotent, caller mapping isolation)
    - snapshot (read-only, consistent across a concurrent replace)
"""

import threading

import pytest

from frp_multiuser.credentials.base import BaseCredentialStore
from frp_multiuser.credentials.store import CredentialStore


@pytest.fixture
def store():
    """Fresh store seeded with one user."""
    return CredentialStore({"alice": "secret"})


def test_store_implements_base_contract(store):
    assert isinstance(store, BaseCredentialStore)


def test_lookup_found_and_missing(store):
    assert store.lookup("alice") == "secret"
    assert store.lookup("bob") is None


def test_empty_store():
    store = CredentialStore()
    assert len(store) == 0
    assert store.lookup("alice") is None


def test_replace_swaps_whole_mapping(store):
    store.replace({"bob": "pw"})
    assert store.lookup("bob") == "pw"
    assert store.lookup("alice") is None
    assert len(store) == 1


def test_replace_twice_with_same_content_is_idempotent(store):
    store.replace({"bob": "pw"})
    first = dict(store.snapshot())
    store.replace({"bob": "pw"})
    assert dict(store.snapshot()) == first
    assert store.lookup("bob") == "pw"


def test_replace_copies_the_given_mapping(store):
    source = {"bob": "pw"}
    store.replace(source)
    source["bob"] = "changed"
    source["eve"] = "intruder"
    assert store.lookup("bob") == "pw"
    assert store.lookup("eve") is None


def test_snapshot_is_read_only(store):
    with pytest.raises(TypeError):
        store.snapshot()["alice"] = "hijacked"


def test_old_snapshot_unaffected_by_replace(store):
    before = store.snapshot()
    store.replace({"bob": "pw"})
    assert before["alice"] == "secret"
    assert "bob" not in before


def test_readers_never_see_mixed_generations():
    """
    Every generation maps both keys to the same value; a torn read would
    show two different values within one snapshot.
    """
    store = CredentialStore({"a": "0", "b": "0"})
    stop = threading.Event()
    torn = []

    def reader():
        while not stop.is_set():
            snap = store.snapshot()
            if snap["a"] != snap["b"]:
                torn.append((snap["a"], snap["b"]))

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    for gen in range(1, 2000):
        store.replace({"a": str(gen), "b": str(gen)})
    stop.set()
    for t in readers:
        t.join()

    assert torn == []
    assert store.lookup("a") == "1999"
