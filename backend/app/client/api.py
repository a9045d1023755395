"""
HTTP client for the DocVault API, built on httpx.

    client = DocVaultClient("http://localhost:8000/api/documentManagement",
                            SessionContext.load("~/.docvault/session.json"))
    client.generate_otp("+15551234567")
    client.validate_otp("+15551234567", "123456")
    client.search_documents(major_head="Personal")
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from .session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class DocVaultError(Exception):
    """Non-2xx response. `payload` is the decoded error body when it was JSON."""

    def __init__(self, status_code: int, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class DocVaultClient:

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionContext] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or SessionContext()
        self.http = http or httpx.Client(timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self.http.close()

    def _send(self, method: str, path: str, auth: bool = True, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if auth:
            headers.update(self.session.auth_headers())
        response = self.http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            message = payload.get("message") or response.reason_phrase or "Request failed"
            if auth and response.status_code == 401 and self.session.is_authenticated:
                logger.info("[Client] Session rejected by server, logging out")
                self.session.logout()
            raise DocVaultError(response.status_code, message, payload)
        return response

    def _json(self, method: str, path: str, auth: bool = True, **kwargs) -> Dict[str, Any]:
        return self._send(method, path, auth=auth, **kwargs).json()

    def generate_otp(self, mobile_number: str) -> Dict[str, Any]:
        """Request an OTP. In dev mode the response carries the code under `otp`."""
        return self._json("POST", "/generateOTP", auth=False, json={"mobile_number": mobile_number})

    def validate_otp(self, mobile_number: str, otp: str) -> Dict[str, Any]:
        """Exchange an OTP for a session token and remember it."""
        result = self._json("POST", "/validateOTP", auth=False, json={"mobile_number": mobile_number, "otp": otp})
        self.session.set_session(result["token"], result["user_id"], result.get("user"))
        return result

    def me(self) -> Dict[str, Any]:
        return self._json("GET", "/me")["user"]

    def upload_document(
        self,
        file: Union[str, Path],
        major_head: str,
        minor_head: str,
        document_date: Optional[str] = None,
        remarks: Optional[str] = None,
        tags: Optional[List[str]] = None,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        path = Path(file)
        data = {
            "major_head": major_head,
            "minor_head": minor_head,
            "document_date": document_date,
            "document_remarks": remarks,
            "tags": [{"tag_name": tag} for tag in (tags or [])],
        }
        with open(path, "rb") as f:
            files = {"file": (path.name, f, content_type or "application/octet-stream")}
            return self._json("POST", "/saveDocumentEntry", files=files, data={"data": json.dumps(data)})["data"]

    def search_documents(
        self,
        start: int = 0,
        length: int = 10,
        tags: Optional[List[str]] = None,
        search: Optional[str] = None,
        **filters: Any,
    ) -> Dict[str, Any]:
        """
        Search documents visible to the current user.

        Keyword filters: major_head, minor_head, from_date, to_date, uploaded_by.
        Returns the raw {data, recordsTotal, recordsFiltered} envelope.
        """
        body: Dict[str, Any] = {k: v for k, v in filters.items() if v is not None}
        body.update({"start": start, "length": length})
        if tags:
            body["tags"] = [{"tag_name": tag} for tag in tags]
        if search:
            body["search"] = {"value": search}
        return self._json("POST", "/searchDocumentEntry", json=body)

    def document_tags(self, term: str = "") -> List[str]:
        result = self._json("POST", "/documentTags", json={"term": term})
        return [item["tag_name"] for item in result["data"]]

    def download_document(self, document_id: int, dest: Optional[Union[str, Path]] = None) -> bytes:
        """Fetch a document's bytes, writing them to `dest` when given."""
        content = self._send("GET", f"/documents/{document_id}/download").content
        if dest is not None:
            Path(dest).write_bytes(content)
        return content

    def logout(self) -> None:
        self.session.logout()
