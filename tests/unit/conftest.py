"""Shared fixtures: credentials, a fixed clock and an in-memory S3 store."""

import hashlib
import re
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

import pytest
from multidict import CIMultiDict

from s3_multipart.models import Credentials
from s3_multipart.signing.sigv4 import (
    build_authorization_header,
    build_canonical_request,
    build_string_to_sign,
    canonical_query_string,
    compute_signature,
    credential_scope,
    derive_signing_key,
    uri_encode,
)
from s3_multipart.transport.base import CancelToken, HttpRequest, TransportResponse

ACCESS_KEY_ID = "ASIAEXAMPLEKEYID"
SECRET_ACCESS_KEY = "wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY"
SESSION_TOKEN = "FwoGZXIvYXdzEXAMPLETOKEN+/="
REGION = "us-east-1"
ENDPOINT = "http://127.0.0.1:9000"
FIXED_NOW = datetime(2024, 3, 15, 12, 30, 45, tzinfo=timezone.utc)

_PART_RE = re.compile(
    r"<Part><PartNumber>(\d+)</PartNumber><ETag>\"([^\"]*)\"</ETag></Part>"
)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        access_key_id=ACCESS_KEY_ID,
        secret_access_key=SECRET_ACCESS_KEY,
        session_token=SESSION_TOKEN,
        region=REGION,
        endpoint=ENDPOINT,
    )


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


class FakeS3Transport:
    """In-memory object store answering the four multipart requests.

    Verifies every request's SigV4 signature the way a real store does,
    rebuilding the canonical request from the URL that was actually sent.
    """

    def __init__(self) -> None:
        self.requests: list[HttpRequest] = []
        self.uploads: dict[str, dict[int, bytes]] = {}
        self.objects: dict[str, bytes] = {}
        self.aborted: set[str] = set()
        self.scripted: deque[TransportResponse | Exception] = deque()
        self.before_send: Callable[[HttpRequest], Any] | None = None
        self.upload_id_template = "mpu+{n}/a.b=="
        self._upload_count = 0

    async def send(
        self, request: HttpRequest, cancel_token: CancelToken | None = None
    ) -> TransportResponse:
        self.requests.append(request)
        if self.before_send is not None:
            await self.before_send(request)
        if self.scripted:
            scripted = self.scripted.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        if not self._signature_matches(request):
            return TransportResponse(
                status=403,
                body=b"<Error><Code>SignatureDoesNotMatch</Code></Error>",
            )

        parts = urlsplit(request.url)
        params = dict(parse_qsl(parts.query, keep_blank_values=True))
        object_path = unquote(parts.path)

        if request.method == "POST" and "uploads" in params:
            self._upload_count += 1
            upload_id = self.upload_id_template.format(n=self._upload_count)
            self.uploads[upload_id] = {}
            body = (
                "<?xml version=\"1.0\" encoding=\"UTF-8\"?>\n"
                "<InitiateMultipartUploadResult>"
                f"<Bucket>b</Bucket><Key>{object_path}</Key>"
                f"<UploadId>{upload_id}</UploadId>"
                "</InitiateMultipartUploadResult>"
            )
            return TransportResponse(status=200, body=body.encode())

        upload_id = params.get("uploadId")
        if upload_id not in self.uploads:
            return TransportResponse(
                status=404, body=b"<Error><Code>NoSuchUpload</Code></Error>"
            )

        if request.method == "PUT":
            part_number = int(params["partNumber"])
            self.uploads[upload_id][part_number] = request.body
            etag = hashlib.md5(request.body).hexdigest()
            return TransportResponse(
                status=200, headers=CIMultiDict({"ETag": f'"{etag}"'})
            )

        if request.method == "POST":
            stored = self.uploads.pop(upload_id)
            listed = _PART_RE.findall(request.body.decode())
            data = b"".join(stored[int(number)] for number, _ in listed)
            self.objects[object_path] = data
            return TransportResponse(
                status=200,
                body=b"<CompleteMultipartUploadResult></CompleteMultipartUploadResult>",
            )

        if request.method == "DELETE":
            del self.uploads[upload_id]
            self.aborted.add(upload_id)
            return TransportResponse(status=204)

        return TransportResponse(status=405)

    def _signature_matches(self, request: HttpRequest) -> bool:
        headers = CIMultiDict(request.headers)
        authorization = headers.get("Authorization", "")
        match = re.match(
            r"AWS4-HMAC-SHA256 Credential=([^/]+)/([^,]+), "
            r"SignedHeaders=([^,]+), Signature=([0-9a-f]{64})$",
            authorization,
        )
        if match is None:
            return False
        access_key, scope, signed, _ = match.groups()
        date_stamp, region, service, _ = scope.split("/")

        parts = urlsplit(request.url)
        uri = uri_encode(unquote(parts.path), encode_slash=False)
        query = canonical_query_string(parse_qsl(parts.query, keep_blank_values=True))
        payload_hash = hashlib.sha256(request.body).hexdigest()
        if headers.get("x-amz-content-sha256") != payload_hash:
            return False

        signed_values = {name: headers.get(name, "") for name in signed.split(";")}
        canonical = build_canonical_request(
            request.method, uri, query, signed_values, payload_hash
        )
        amz_date = headers["x-amz-date"]
        string_to_sign = build_string_to_sign(
            amz_date, credential_scope(date_stamp, region, service), canonical
        )
        key = derive_signing_key(SECRET_ACCESS_KEY, date_stamp, region, service)
        expected = build_authorization_header(
            access_key, scope, signed, compute_signature(key, string_to_sign)
        )
        return expected == authorization


@pytest.fixture
def fake_store() -> FakeS3Transport:
    return FakeS3Transport()
