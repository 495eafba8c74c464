from datetime import timedelta
from urllib.parse import urlparse

import pytest

from cloudvault.core import security
from cloudvault.core.errors import NotFound, ValidationError
from cloudvault.storage.object_store import LocalObjectStore


def _token_of(url):
    return urlparse(url).path.rsplit("/", 1)[-1]


def test_put_then_get(store):
    store.put("u1/f1/v1/a.txt", b"hello", "text/plain")
    assert store.get("u1/f1/v1/a.txt") == b"hello"


def test_put_overwrites_existing_key(store):
    store.put("u1/f1/v1/a.txt", b"old", "text/plain")
    store.put("u1/f1/v1/a.txt", b"new", "text/plain")
    assert store.get("u1/f1/v1/a.txt") == b"new"


def test_get_missing_raises_not_found(store):
    with pytest.raises(NotFound):
        store.get("u1/f1/v9/a.txt")


def test_delete_is_idempotent(store):
    store.put("u1/f1/v1/a.txt", b"hello", "text/plain")
    store.delete("u1/f1/v1/a.txt")
    store.delete("u1/f1/v1/a.txt")
    with pytest.raises(NotFound):
        store.get("u1/f1/v1/a.txt")


@pytest.mark.parametrize("key", ["", "u1//a.txt", "u1/../etc/passwd", "./a.txt", "u1\\a.txt"])
def test_invalid_keys_rejected(store, key):
    with pytest.raises(ValidationError):
        store.put(key, b"x", "text/plain")


def test_objects_found_on_any_disk(tmp_path):
    first = LocalObjectStore([str(tmp_path / "a")], base_url="http://testserver/api/v1")
    first.put("u1/f1/v1/a.txt", b"data", "text/plain")
    both = LocalObjectStore([str(tmp_path / "b"), str(tmp_path / "a")], base_url="http://testserver/api/v1")
    assert both.get("u1/f1/v1/a.txt") == b"data"


def test_presign_round_trip(store):
    url = store.presign("u1/f1/v1/a.txt", 60)
    assert url.startswith("http://testserver/api/v1/objects/")
    assert store.resolve_presigned(_token_of(url)) == "u1/f1/v1/a.txt"


def test_expired_presigned_link(store):
    token = security.create_token({"typ": "object", "key": "u1/f1/v1/a.txt"}, timedelta(seconds=-5))
    with pytest.raises(NotFound):
        store.resolve_presigned(token)


def test_other_token_types_are_not_presigned_links(store):
    access_token = security.create_token({"sub": "u1"}, timedelta(days=7))
    with pytest.raises(NotFound):
        store.resolve_presigned(access_token)
    with pytest.raises(NotFound):
        store.resolve_presigned("garbage")
