"""Models used by the multipart uploader."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from s3_multipart.exceptions import InvalidSessionStateError


class Credentials(BaseModel):
    """Short-lived delegated credentials for one object store.

    Attributes:
        access_key_id: temporary access key id.
        secret_access_key: temporary secret access key.
        session_token: STS session token, mandatory for delegated credentials.
        region: bucket region, e.g. ``us-east-1``.
        endpoint: service endpoint, e.g. ``https://s3.amazonaws.com``.
    """

    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(min_length=1)
    secret_access_key: SecretStr
    session_token: SecretStr
    region: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)

    @field_validator("secret_access_key", "session_token")
    @classmethod
    def _require_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value


@dataclass(frozen=True)
class Part:
    """A successfully uploaded part, as needed by CompleteMultipartUpload."""

    part_number: int
    etag: str


class UploadState(str, Enum):
    """Lifecycle states for a multipart upload session.

    State transitions:
    - UNINITIATED + initiate -> INITIATED
    - INITIATED + upload part -> UPLOADING
    - INITIATED | UPLOADING + complete -> COMPLETED
    - INITIATED | UPLOADING + abort -> ABORTED
    """

    UNINITIATED = "uninitiated"
    INITIATED = "initiated"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset({UploadState.COMPLETED, UploadState.ABORTED})


@dataclass
class UploadSession:
    """Caller-owned record of one multipart upload."""

    bucket: str
    key: str
    upload_id: str | None = None
    state: UploadState = UploadState.UNINITIATED
    parts: list[Part] = field(default_factory=list)
    location: str | None = None

    @property
    def is_terminal(self) -> bool:
        """True once the session was completed or aborted."""
        return self.state in TERMINAL_STATES

    def require_upload_id(self) -> str:
        """Return the upload id, or raise if the session was never initiated."""
        if self.upload_id is None or self.state == UploadState.UNINITIATED:
            raise InvalidSessionStateError(
                f"Upload for {self.bucket}/{self.key} has not been initiated"
            )
        return self.upload_id

    def ensure_uninitiated(self) -> None:
        """Raise if Initiate already ran for this session."""
        if self.state != UploadState.UNINITIATED:
            raise InvalidSessionStateError(
                f"Upload for {self.bucket}/{self.key} is already {self.state.value}"
            )

    def mark_initiated(self, upload_id: str) -> None:
        """Record the upload id returned by Initiate."""
        self.ensure_uninitiated()
        self.upload_id = upload_id
        self.state = UploadState.INITIATED

    def ensure_accepting_parts(self) -> None:
        """Raise unless the session can take another part upload."""
        self.require_upload_id()
        if self.is_terminal:
            raise InvalidSessionStateError(
                f"Upload {self.upload_id} is {self.state.value}; "
                "no further parts are accepted"
            )

    def add_part(self, part: Part) -> None:
        """Append a completed part."""
        self.ensure_accepting_parts()
        self.parts.append(part)
        self.state = UploadState.UPLOADING

    def sorted_parts(self) -> list[Part]:
        """Return parts ordered by part number, the latest upload of a number wins."""
        latest: dict[int, Part] = {}
        for part in self.parts:
            latest[part.part_number] = part
        return [latest[number] for number in sorted(latest)]

    def mark_completed(self, location: str) -> None:
        """Move to COMPLETED and remember the final object URL."""
        self.ensure_accepting_parts()
        self.state = UploadState.COMPLETED
        self.location = location

    def mark_aborted(self) -> None:
        """Move to ABORTED; the upload id is no longer valid."""
        self.ensure_accepting_parts()
        self.state = UploadState.ABORTED


@dataclass(frozen=True)
class FileUploadResult:
    """Outcome of uploading a whole local file."""

    location: str
    upload_id: str
    total_bytes: int
    parts: list[Part]
    sha256: str
    md5: str
