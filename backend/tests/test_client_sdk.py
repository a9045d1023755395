"""
Tests for the Python client: session persistence and API calls over a mock transport
"""
import json
import stat

import httpx
import pytest

from app.client import DocVaultClient, DocVaultError, SessionContext

BASE = "http://docvault.test/api/documentManagement"


def test_session_save_and_load(tmp_path):
    path = tmp_path / "session.json"
    session = SessionContext(path)
    session.set_session("tok-123", 7, {"id": 7, "name": "User 4567"})

    restored = SessionContext.load(path)
    assert restored.is_authenticated
    assert restored.token == "tok-123"
    assert restored.user_id == 7
    assert restored.user["name"] == "User 4567"
    assert restored.auth_headers() == {"Authorization": "Bearer tok-123"}
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_session_logout_clears_memory_and_file(tmp_path):
    path = tmp_path / "session.json"
    session = SessionContext(path)
    session.set_session("tok-123", 7)

    session.logout()

    assert not session.is_authenticated
    assert session.auth_headers() == {}
    assert not path.exists()
    assert not SessionContext.load(path).is_authenticated


def test_session_load_ignores_corrupt_or_partial_file(tmp_path):
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json")
    assert not SessionContext.load(corrupt).is_authenticated

    partial = tmp_path / "partial.json"
    partial.write_text(json.dumps({"token": "tok-123"}))
    assert not SessionContext.load(partial).is_authenticated


class Recorder:
    """httpx MockTransport handler that serves canned responses per path."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api/documentManagement"):]
        status, body = self.routes[(request.method, path)]
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)


def _client(routes, session=None):
    recorder = Recorder(routes)
    http = httpx.Client(transport=httpx.MockTransport(recorder))
    return DocVaultClient(BASE, session=session, http=http), recorder


def test_login_flow_stores_session(tmp_path):
    session = SessionContext(tmp_path / "session.json")
    client, recorder = _client({
        ("POST", "/generateOTP"): (200, {"success": True, "message": "OTP generated (dev mode)", "otp": "482913",
                                         "expires_in": 300, "delivered": False}),
        ("POST", "/validateOTP"): (200, {"success": True, "message": "OTP verified successfully", "token": "tok-1",
                                         "user_id": 3, "user": {"id": 3, "mobile_number": "+15551234567",
                                                                "name": "User 4567", "role": "user"}}),
        ("GET", "/me"): (200, {"success": True, "user": {"id": 3}}),
    }, session=session)

    otp = client.generate_otp("+15551234567")["otp"]
    client.validate_otp("+15551234567", otp)

    assert session.token == "tok-1"
    assert SessionContext.load(tmp_path / "session.json").user_id == 3
    assert "authorization" not in recorder.requests[0].headers
    assert json.loads(recorder.requests[1].content) == {"mobile_number": "+15551234567", "otp": "482913"}

    client.me()
    assert recorder.requests[2].headers["authorization"] == "Bearer tok-1"


def test_error_payload_surfaces(tmp_path):
    client, _ = _client({
        ("POST", "/validateOTP"): (400, {"success": False, "message": "Invalid OTP", "attempts_remaining": 2}),
    })

    with pytest.raises(DocVaultError) as exc_info:
        client.validate_otp("+15551234567", "000000")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid OTP"
    assert exc_info.value.payload["attempts_remaining"] == 2
    assert not client.session.is_authenticated


def test_rejected_session_logs_out(tmp_path):
    session = SessionContext(tmp_path / "session.json")
    session.set_session("stale", 3)
    client, _ = _client({
        ("POST", "/searchDocumentEntry"): (401, {"success": False, "message": "Invalid or expired token"}),
    }, session=session)

    with pytest.raises(DocVaultError):
        client.search_documents()
    assert not session.is_authenticated
    assert not (tmp_path / "session.json").exists()


def test_search_upload_tags_download(tmp_path):
    session = SessionContext()
    session.set_session("tok-1", 3)
    client, recorder = _client({
        ("POST", "/searchDocumentEntry"): (200, {"success": True, "data": [], "recordsTotal": 0, "recordsFiltered": 0}),
        ("POST", "/saveDocumentEntry"): (200, {"success": True, "data": {"id": 9}}),
        ("POST", "/documentTags"): (200, {"success": True, "data": [{"tag_name": "invoice"}]}),
        ("GET", "/documents/9/download"): (200, b"%PDF-1.4"),
    }, session=session)

    client.search_documents(major_head="Personal", minor_head=None, tags=["tax"], search="march", start=10, length=5)
    assert json.loads(recorder.requests[0].content) == {
        "major_head": "Personal",
        "start": 10,
        "length": 5,
        "tags": [{"tag_name": "tax"}],
        "search": {"value": "march"},
    }

    pdf = tmp_path / "invoice.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    assert client.upload_document(pdf, "Professional", "Accounts", tags=["invoice"])["id"] == 9
    upload = recorder.requests[1]
    assert upload.headers["content-type"].startswith("multipart/form-data")
    assert b'name="data"' in upload.content
    assert b'"tag_name": "invoice"' in upload.content

    assert client.document_tags("inv") == ["invoice"]

    dest = tmp_path / "copy.pdf"
    assert client.download_document(9, dest) == b"%PDF-1.4"
    assert dest.read_bytes() == b"%PDF-1.4"

    client.logout()
    assert not session.is_authenticated
