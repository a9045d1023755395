"""
API tests for document upload, search, tags and download
"""
import json
from pathlib import Path

import pytest

from app.core.config import settings
from app.models import Document, DocumentTag

PREFIX = settings.API_PREFIX
PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _entry(**overrides):
    data = {
        "major_head": "Personal",
        "minor_head": "John",
        "document_date": "2025-03-01",
        "document_remarks": "Passport scan",
        "tags": [{"tag_name": "passport"}, {"tag_name": "identity"}],
        "user_id": "ignored",
    }
    data.update(overrides)
    return json.dumps(data)


def _upload(client, headers, filename="passport.pdf", content=PDF_BYTES, content_type="application/pdf", **overrides):
    return client.post(
        f"{PREFIX}/saveDocumentEntry",
        headers=headers,
        files={"file": (filename, content, content_type)},
        data={"data": _entry(**overrides)},
    )


@pytest.fixture
def owner(make_user):
    return make_user(mobile_number="+15551110000", name="Owner")


@pytest.fixture
def other(make_user):
    return make_user(mobile_number="+15552220000", name="Other")


@pytest.fixture
def admin(make_user):
    return make_user(mobile_number="+15553330000", name="Admin", role="admin")


def test_upload_stores_file_and_metadata(client, db, owner, auth_headers, upload_dir):
    response = _upload(client, auth_headers(owner))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["original_name"] == "passport.pdf"
    assert data["mime_type"] == "application/pdf"
    assert data["file_size"] == len(PDF_BYTES)
    assert data["major_head"] == "Personal"
    assert data["document_date"] == "2025-03-01"
    assert data["remarks"] == "Passport scan"
    assert sorted(tag["tag_name"] for tag in data["tags"]) == ["identity", "passport"]
    assert data["uploaded_by"] == owner.id

    document = db.query(Document).one()
    path = Path(document.file_path)
    assert path.parent == upload_dir / str(owner.id)
    assert path.name.endswith("_passport.pdf")
    assert path.read_bytes() == PDF_BYTES


def test_upload_requires_auth(client):
    response = client.post(
        f"{PREFIX}/saveDocumentEntry",
        files={"file": ("a.pdf", PDF_BYTES, "application/pdf")},
        data={"data": _entry()},
    )
    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.parametrize("filename,content_type", [
    ("notes.txt", "text/plain"),
    ("script.pdf", "text/html"),
    ("photo.gif", "image/gif"),
])
def test_upload_rejects_unsupported_types(client, db, owner, auth_headers, filename, content_type):
    response = _upload(client, auth_headers(owner), filename=filename, content_type=content_type)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Only PDF, JPEG and PNG files are allowed"}
    assert db.query(Document).count() == 0


def test_upload_accepts_generic_content_type_with_known_extension(client, owner, auth_headers):
    response = _upload(client, auth_headers(owner), filename="scan.png", content=PNG_BYTES,
                       content_type="application/octet-stream")
    assert response.status_code == 200
    assert response.json()["data"]["mime_type"] == "image/png"


def test_upload_rejects_oversized_file(client, db, owner, auth_headers, upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    big = b"0" * (1024 * 1024 + 1)

    response = _upload(client, auth_headers(owner), content=big)

    assert response.status_code == 413
    assert db.query(Document).count() == 0
    assert not any((upload_dir / str(owner.id)).iterdir())


def test_upload_rejects_empty_file(client, owner, auth_headers):
    response = _upload(client, auth_headers(owner), content=b"")
    assert response.status_code == 400


def test_upload_rejects_bad_metadata(client, db, owner, auth_headers):
    response = _upload(client, auth_headers(owner), major_head="Secret")

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["field"] == "major_head"
    assert db.query(Document).count() == 0


def test_upload_sanitizes_filename(client, db, owner, auth_headers, upload_dir):
    response = _upload(client, auth_headers(owner), filename="../../etc/pass wd.pdf")

    assert response.status_code == 200
    path = Path(db.query(Document).one().file_path)
    assert path.parent == upload_dir / str(owner.id)
    assert path.name.endswith("_pass_wd.pdf")


def test_duplicate_tags_collapsed(client, db, owner, auth_headers):
    _upload(client, auth_headers(owner), tags=[{"tag_name": "Tax"}, {"tag_name": "tax "}, {"tag_name": "2024"}])
    assert sorted(t.tag_name for t in db.query(DocumentTag).all()) == ["2024", "Tax"]


def _search(client, headers, **body):
    body.setdefault("start", 0)
    body.setdefault("length", 10)
    return client.post(f"{PREFIX}/searchDocumentEntry", headers=headers, json=body)


def test_search_filters(client, owner, auth_headers):
    headers = auth_headers(owner)
    _upload(client, headers, filename="passport.pdf", document_date="2025-01-10")
    _upload(client, headers, filename="invoice.pdf", major_head="Professional", minor_head="Accounts",
            document_date="2025-02-20", document_remarks="March invoice", tags=[{"tag_name": "invoice"}])
    _upload(client, headers, filename="receipt.png", content=PNG_BYTES, content_type="image/png",
            minor_head="john", document_date="2025-03-05", document_remarks=None, tags=[])

    everything = _search(client, headers).json()
    assert everything["recordsTotal"] == 3
    assert everything["recordsFiltered"] == 3
    assert [d["original_name"] for d in everything["data"]] == ["receipt.png", "invoice.pdf", "passport.pdf"]

    personal = _search(client, headers, major_head="Personal", minor_head="JOHN").json()
    assert {d["original_name"] for d in personal["data"]} == {"passport.pdf", "receipt.png"}
    assert personal["recordsTotal"] == 3
    assert personal["recordsFiltered"] == 2

    by_date = _search(client, headers, from_date="2025-02-01", to_date="2025-02-28").json()
    assert [d["original_name"] for d in by_date["data"]] == ["invoice.pdf"]

    by_tag = _search(client, headers, tags=[{"tag_name": "Passport"}]).json()
    assert [d["original_name"] for d in by_tag["data"]] == ["passport.pdf"]

    by_text = _search(client, headers, search={"value": "march"}).json()
    assert [d["original_name"] for d in by_text["data"]] == ["invoice.pdf"]

    blanks = _search(client, headers, major_head="", minor_head="", from_date="").json()
    assert blanks["recordsFiltered"] == 3


def test_search_pagination(client, owner, auth_headers):
    headers = auth_headers(owner)
    for i in range(5):
        _upload(client, headers, filename=f"doc{i}.pdf")

    page = _search(client, headers, start=2, length=2).json()
    assert page["recordsFiltered"] == 5
    assert [d["original_name"] for d in page["data"]] == ["doc2.pdf", "doc1.pdf"]


def test_search_is_scoped_to_owner_unless_admin(client, owner, other, admin, auth_headers):
    _upload(client, auth_headers(owner), filename="mine.pdf")
    _upload(client, auth_headers(other), filename="theirs.pdf")

    mine = _search(client, auth_headers(owner)).json()
    assert [d["original_name"] for d in mine["data"]] == ["mine.pdf"]
    assert mine["recordsTotal"] == 1

    snooping = _search(client, auth_headers(owner), uploaded_by=other.id).json()
    assert snooping["data"] == []

    everyone = _search(client, auth_headers(admin)).json()
    assert everyone["recordsTotal"] == 2
    filtered = _search(client, auth_headers(admin), uploaded_by=other.id).json()
    assert [d["original_name"] for d in filtered["data"]] == ["theirs.pdf"]


def test_document_tags_prefix_lookup(client, owner, auth_headers):
    headers = auth_headers(owner)
    _upload(client, headers, tags=[{"tag_name": "invoice"}, {"tag_name": "insurance"}])
    _upload(client, headers, tags=[{"tag_name": "invoice"}, {"tag_name": "tax"}])

    response = client.post(f"{PREFIX}/documentTags", headers=headers, json={"term": "IN"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [{"tag_name": "insurance"}, {"tag_name": "invoice"}]}

    wildcard = client.post(f"{PREFIX}/documentTags", headers=headers, json={"term": "%"})
    assert wildcard.json()["data"] == []


def test_get_and_download(client, owner, other, auth_headers):
    document_id = _upload(client, auth_headers(owner)).json()["data"]["id"]

    meta = client.get(f"{PREFIX}/documents/{document_id}", headers=auth_headers(owner))
    assert meta.status_code == 200
    assert meta.json()["data"]["id"] == document_id

    download = client.get(f"{PREFIX}/documents/{document_id}/download", headers=auth_headers(owner))
    assert download.status_code == 200
    assert download.content == PDF_BYTES
    assert download.headers["content-type"] == "application/pdf"
    assert "passport.pdf" in download.headers["content-disposition"]

    hidden = client.get(f"{PREFIX}/documents/{document_id}", headers=auth_headers(other))
    assert hidden.status_code == 404
    assert hidden.json() == {"success": False, "message": "Document not found"}


def test_download_missing_file(client, db, owner, auth_headers):
    document_id = _upload(client, auth_headers(owner)).json()["data"]["id"]
    Path(db.get(Document, document_id).file_path).unlink()

    response = client.get(f"{PREFIX}/documents/{document_id}/download", headers=auth_headers(owner))
    assert response.status_code == 404
