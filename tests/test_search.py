from datetime import datetime, timedelta

import pytest

from cloudvault import crud
from cloudvault.core.errors import ValidationError
from cloudvault.services import files as file_service
from cloudvault.services import folder_tree, search

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def library(db, store, make_user):
    make_user("u1")
    make_user("u2")
    uploads = [
        ("Holiday.JPG", 10, "image/jpeg"),
        ("report.pdf", 30, "application/pdf"),
        ("budget.xlsx", 20, XLSX),
        ("notes.txt", 5, "text/plain"),
        ("archive.zip", 40, "application/zip"),
    ]
    by_name = {}
    for name, size, mime_type in uploads:
        by_name[name] = file_service.upload_file(
            db, store, owner_id="u1", filename=name, content=b"x" * size, content_type=mime_type
        )
    file_service.upload_file(db, store, owner_id="u2", filename="report-u2.pdf", content=b"y", content_type="application/pdf")
    # One upload falls outside the default recency window
    old = by_name["archive.zip"]
    crud.file.update(db, db_obj=old, obj_in={"created_at": datetime.utcnow() - timedelta(days=10)})
    return by_name


def _names(result):
    return [f.display_name for f in result["files"]]


def test_classify_mime():
    assert search.classify_mime("image/png") == "image"
    assert search.classify_mime("application/vnd.ms-excel") == "document"
    assert search.classify_mime("application/pdf") == "pdf"
    assert search.classify_mime("application/zip") == "other"
    assert search.classify_mime(None) == "other"


def test_normalize_sort():
    assert search.normalize_sort("updatedAt", "DESC") == ("updated_at", "desc")
    assert search.normalize_sort("mimeType", "asc") == ("type", "asc")
    assert search.normalize_sort("filename", "asc") == ("name", "asc")
    with pytest.raises(ValidationError):
        search.normalize_sort("owner", "asc")
    with pytest.raises(ValidationError):
        search.normalize_sort("name", "up")


def test_clamp():
    assert search.clamp(None, 20, 100) == 20
    assert search.clamp(0, 20, 100) == 20
    assert search.clamp(-3, 20, 100) == 20
    assert search.clamp(55, 20, 100) == 55
    assert search.clamp(500, 20, 100) == 100


class TestKeywordSearch:
    def test_owner_scoped_substring(self, db, library):
        result = search.search_by_keyword(db, owner_id="u1", keyword="REP")
        assert _names(result) == ["report.pdf"]
        assert result["count"] == 1
        assert result["query"] == "REP"

    def test_short_or_missing_keyword_rejected(self, db, library):
        for keyword in (None, "", "   ", "r"):
            with pytest.raises(ValidationError):
                search.search_by_keyword(db, owner_id="u1", keyword=keyword)

    def test_wildcards_match_nothing(self, db, library):
        assert search.search_by_keyword(db, owner_id="u1", keyword="%%")["count"] == 0
        assert search.search_by_keyword(db, owner_id="u1", keyword="__")["count"] == 0

    def test_sorted_results(self, db, library):
        result = search.search_by_keyword(db, owner_id="u1", keyword="t.", sort_by="name", sort_direction="asc")
        assert _names(result) == ["budget.xlsx", "report.pdf"]
        result = search.search_by_keyword(db, owner_id="u1", keyword="t.", sort_by="name", sort_direction="desc")
        assert _names(result) == ["report.pdf", "budget.xlsx"]
        result = search.search_by_keyword(db, owner_id="u1", keyword=".x", sort_by="size", sort_direction="desc")
        assert _names(result) == ["budget.xlsx"]
        assert (result["sort_by"], result["sort_direction"]) == ("size", "desc")


class TestSearchByType:
    def test_families(self, db, library):
        assert _names(search.search_by_type(db, owner_id="u1", file_type="image")) == ["Holiday.JPG"]
        result = search.search_by_type(db, owner_id="u1", file_type="DOCUMENT")
        assert result["type"] == "document"
        assert _names(result) == ["budget.xlsx"]
        assert _names(search.search_by_type(db, owner_id="u1", file_type="pdf")) == ["report.pdf"]
        assert search.search_by_type(db, owner_id="u1", file_type="video")["count"] == 0

    def test_unknown_type_lists_supported(self, db, library):
        with pytest.raises(ValidationError) as excinfo:
            search.search_by_type(db, owner_id="u1", file_type="spreadsheet")
        assert "image, video, audio, pdf, document, text" in excinfo.value.message


class TestRecentFiles:
    def test_default_window(self, db, library):
        result = search.recent_files(db, owner_id="u1")
        assert result["period"] == "Last 7 days"
        assert sorted(_names(result)) == ["Holiday.JPG", "budget.xlsx", "notes.txt", "report.pdf"]

    def test_window_and_limit_are_clamped(self, db, library):
        result = search.recent_files(db, owner_id="u1", days=90)
        assert result["period"] == "Last 30 days"
        assert result["count"] == 5
        assert search.recent_files(db, owner_id="u1", days=0)["period"] == "Last 7 days"
        assert search.recent_files(db, owner_id="u1", days=30, limit=2)["count"] == 2

    def test_newest_first(self, db, library):
        result = search.recent_files(db, owner_id="u1", days=30)
        assert _names(result)[-1] == "archive.zip"


def test_file_stats(db, library):
    stats = search.file_stats(db, owner_id="u1")
    assert stats["total_files"] == 5
    assert stats["total_size"] == 105
    assert stats["total_size_formatted"] == "105.0 B"
    assert stats["type_breakdown"] == {
        "image": 1, "video": 0, "audio": 0, "pdf": 1, "document": 1, "text": 1, "other": 1
    }
    assert stats["recent_uploads"] == 4
    assert search.file_stats(db, owner_id="nobody")["total_files"] == 0


class TestListSorted:
    def test_by_name_is_case_insensitive(self, db, library):
        result = search.list_sorted(db, owner_id="u1", sort_by="name", sort_direction="asc")
        assert _names(result) == ["archive.zip", "budget.xlsx", "Holiday.JPG", "notes.txt", "report.pdf"]

    def test_by_size_descending_with_limit(self, db, library):
        result = search.list_sorted(db, owner_id="u1", sort_by="size", sort_direction="desc", limit=3)
        assert _names(result) == ["archive.zip", "report.pdf", "budget.xlsx"]
        assert result["count"] == 3

    def test_folder_filter(self, db, store, library):
        folder_tree.create_folder(db, owner_id="u1", name="F", folder_id="F")
        file_service.upload_file(db, store, owner_id="u1", filename="in-f.txt", content=b"f", folder_id="F")
        assert _names(search.list_sorted(db, owner_id="u1", folder_id="F")) == ["in-f.txt"]
        assert "in-f.txt" not in _names(search.list_sorted(db, owner_id="u1", folder_id="root"))
        assert search.list_sorted(db, owner_id="u1")["count"] == 6

    def test_invalid_sort_rejected(self, db, library):
        with pytest.raises(ValidationError):
            search.list_sorted(db, owner_id="u1", sort_by="color")


class TestSearchRoutes:
    def _upload(self, client, headers, name, mime_type):
        response = client.post(
            "/api/v1/files/upload", headers=headers, files={"file": (name, b"data", mime_type)}
        )
        assert response.status_code == 201

    def test_routes(self, client, auth_headers):
        headers = auth_headers("u1")
        self._upload(client, headers, "photo.png", "image/png")
        self._upload(client, headers, "plan.txt", "text/plain")

        response = client.get("/api/v1/files/search", params={"q": "pho"}, headers=headers)
        assert response.status_code == 200
        assert [f["display_name"] for f in response.json()["files"]] == ["photo.png"]

        response = client.get("/api/v1/files/search", params={"q": "p"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

        response = client.get("/api/v1/files/search/by-type", params={"type": "image"}, headers=headers)
        assert response.json()["count"] == 1
        response = client.get("/api/v1/files/search/by-type", params={"type": "movie"}, headers=headers)
        assert response.status_code == 400

        response = client.get("/api/v1/files/search/recent", params={"days": 99}, headers=headers)
        assert response.json()["period"] == "Last 30 days"
        assert response.json()["count"] == 2

        stats = client.get("/api/v1/files/search/stats", headers=headers).json()
        assert stats["total_files"] == 2
        assert stats["type_breakdown"]["image"] == 1
        assert stats["type_breakdown"]["text"] == 1

        response = client.get(
            "/api/v1/files/search/list", params={"sortBy": "name", "sortDirection": "desc"}, headers=headers
        )
        assert [f["display_name"] for f in response.json()["files"]] == ["plan.txt", "photo.png"]
        response = client.get("/api/v1/files/search/list", params={"sortDirection": "sideways"}, headers=headers)
        assert response.status_code == 400

        options = client.get("/api/v1/files/search/sort-options", headers=headers).json()
        assert [o["value"] for o in options["sort_direction"]] == ["asc", "desc"]

    def test_routes_require_token(self, client):
        response = client.get("/api/v1/files/search/stats")
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"
