"""Constants for the S3 multipart upload client."""

import hashlib
import os
from pathlib import Path

SIGNING_ALGORITHM = "AWS4-HMAC-SHA256"
SIGNING_SERVICE = "s3"
SIGNING_TERMINATOR = "aws4_request"
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"

# Payload hash sent with Initiate and Abort, which carry no body
EMPTY_PAYLOAD_SHA256 = hashlib.sha256(b"").hexdigest()

COMPLETE_CONTENT_TYPE = "application/xml"

MIN_PART_NUMBER = 1
MAX_PART_NUMBER = 10000
MIN_PART_SIZE = 5 * 1024 * 1024  # S3 minimum for every part but the last
DEFAULT_PART_SIZE = 8 * 1024 * 1024
DEFAULT_HASH_CHUNK_SIZE = 1024 * 1024
DEFAULT_REQUEST_TIMEOUT_SECS = 300

CONFIG_DIR = Path(os.getenv("S3MP_CONFIG_DIR", str(Path.home() / ".s3_multipart")))
CONFIG_FILE = "config.yaml"
CONFIG_ENCODING = "utf-8"
