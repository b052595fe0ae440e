"""Pydantic model for uploader configuration."""

from pydantic import BaseModel, Field, SecretStr, field_validator

from s3_multipart.config_manager.helpers import parse_bytes
from s3_multipart.const import (
    DEFAULT_PART_SIZE,
    DEFAULT_REQUEST_TIMEOUT_SECS,
    MIN_PART_SIZE,
)
from s3_multipart.models import Credentials


class UploaderConfig(BaseModel):
    """Configuration options for an uploader run.

    Attributes:
        access_key_id: temporary access key id.
        secret_access_key: temporary secret access key.
        session_token: STS session token.
        region: bucket region.
        endpoint: object store endpoint URL.
        part_size: bytes per uploaded part.
        request_timeout: total timeout per request, in seconds.
    """

    access_key_id: str | None = None
    secret_access_key: SecretStr | None = None
    session_token: SecretStr | None = None
    region: str | None = None
    endpoint: str | None = None
    part_size: int = Field(default=DEFAULT_PART_SIZE, ge=MIN_PART_SIZE)
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECS, gt=0)

    @field_validator("part_size", mode="before")
    @classmethod
    def _parse_part_size(cls, value: int | str) -> int:
        return parse_bytes(value)

    def missing_credentials(self) -> list[str]:
        """Names of the credential fields that are unset or empty."""
        missing: list[str] = []
        for name in (
            "access_key_id",
            "secret_access_key",
            "session_token",
            "region",
            "endpoint",
        ):
            value = getattr(self, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if not value:
                missing.append(name)
        return missing

    def to_credentials(self) -> Credentials:
        """Build ``Credentials`` from this configuration.

        Raises:
            ValueError: If any credential field is missing.
        """
        missing = self.missing_credentials()
        if missing:
            raise ValueError(f"Missing credential fields: {', '.join(missing)}")
        return Credentials(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            region=self.region,
            endpoint=self.endpoint,
        )
