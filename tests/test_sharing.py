from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from cloudvault.core import security
from cloudvault.core.errors import Forbidden, NotFound
from cloudvault.services import files as file_service
from cloudvault.services import sharing


def _token_of(link):
    return parse_qs(urlparse(link["url"]).query)["token"][0]


def _resolve(store, presigned_url):
    return store.resolve_presigned(urlparse(presigned_url).path.rsplit("/", 1)[-1])


@pytest.fixture
def shared_file(db, store, make_user):
    make_user("u1")
    make_user("u2")
    return file_service.upload_file(db, store, owner_id="u1", filename="photo.png", content=b"one")


def _replace(db, store, file_id, content):
    return file_service.replace_version(
        db, store, file_id=file_id, requester_id="u1", filename="photo.png", content=content
    )


def test_scenario_d_link_stays_on_issued_version(db, store, shared_file):
    _replace(db, store, shared_file.id, b"two")
    link = sharing.issue(db, file_id=shared_file.id, requester_id="u1")
    assert link["version"] == 2
    _replace(db, store, shared_file.id, b"three")

    url = sharing.redeem(db, store, public_id=link["public_id"], token=_token_of(link))
    key = _resolve(store, url)
    assert key.endswith("/v2/photo.png")
    assert store.get(key) == b"two"


def test_only_owner_can_share(db, shared_file):
    with pytest.raises(Forbidden):
        sharing.issue(db, file_id=shared_file.id, requester_id="u2")
    with pytest.raises(NotFound):
        sharing.issue(db, file_id="missing", requester_id="u1")


def test_public_ids_are_unique(db, shared_file):
    ids = {sharing.issue(db, file_id=shared_file.id, requester_id="u1")["public_id"] for _ in range(5)}
    assert len(ids) == 5


def test_token_for_another_link_is_refused(db, store, shared_file):
    first = sharing.issue(db, file_id=shared_file.id, requester_id="u1")
    second = sharing.issue(db, file_id=shared_file.id, requester_id="u1")
    with pytest.raises(NotFound):
        sharing.redeem(db, store, public_id=second["public_id"], token=_token_of(first))


def test_forged_public_id_is_refused(db, store, shared_file):
    token = security.create_token(
        {"typ": "share", "pid": "made-up", "fid": shared_file.id, "ver": 1, "fn": "photo.png", "own": "u1"},
        timedelta(minutes=5),
    )
    with pytest.raises(NotFound):
        sharing.redeem(db, store, public_id="made-up", token=token)


def test_expired_token_is_refused(db, store, shared_file):
    link = sharing.issue(db, file_id=shared_file.id, requester_id="u1")
    token = security.create_token(
        {"typ": "share", "pid": link["public_id"], "fid": shared_file.id, "ver": 1, "fn": "photo.png", "own": "u1"},
        timedelta(seconds=-1),
    )
    with pytest.raises(NotFound):
        sharing.redeem(db, store, public_id=link["public_id"], token=token)
    with pytest.raises(NotFound):
        sharing.redeem(db, store, public_id=link["public_id"], token=None)


def test_deleted_file_is_not_served(db, store, shared_file):
    link = sharing.issue(db, file_id=shared_file.id, requester_id="u1")
    file_service.delete_file(db, store, file_id=shared_file.id, requester_id="u1")
    with pytest.raises(NotFound):
        sharing.redeem(db, store, public_id=link["public_id"], token=_token_of(link))


def test_evicted_version_is_not_served(db, store, shared_file):
    link = sharing.issue(db, file_id=shared_file.id, requester_id="u1")
    for content in (b"two", b"three", b"four"):
        _replace(db, store, shared_file.id, content)
    with pytest.raises(NotFound) as exc_info:
        sharing.redeem(db, store, public_id=link["public_id"], token=_token_of(link))
    assert exc_info.value.message == sharing.UNAVAILABLE_MESSAGE
