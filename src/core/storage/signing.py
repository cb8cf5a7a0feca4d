"""
AWS Signature Version 4 query-string signing, without an SDK.

R2 speaks the S3 API, so a presigned URL is a plain SigV4 presign against
the "auto" region. The pieces are kept separate so each can be checked on
its own:

    build_canonical_request()  method/path/query/headers -> CanonicalRequest
    build_string_to_sign()     timestamp + scope + canonical request hash
    derive_signing_key()       HMAC chain over date/region/service
    derive_signature()         hex HMAC of the string to sign
    build_presigned_url()      all of the above, for one object

Any byte of difference in the canonical form yields a signature the store
rejects, so the rules below follow the SigV4 documentation exactly.
Nothing here is cached: every URL is computed from its arguments and the
clock at the time of the call.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional
from urllib.parse import quote

from .errors import SigningComputationError
from .models import StorageConfig

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SCOPE_TERMINATOR = "aws4_request"

REGION = "auto"  # R2 ignores regions but SigV4 still needs one
SERVICE = "s3"

DEFAULT_EXPIRES_IN = 3600
MAX_EXPIRES_IN = 7 * 24 * 3600  # SigV4 presign ceiling
SUPPORTED_METHODS = ("GET", "PUT")


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """
    Percent-encode per RFC 3986.

    Unreserved characters (A-Z a-z 0-9 - _ . ~) pass through, everything
    else becomes %XX with uppercase hex over the UTF-8 bytes.
    """
    safe = "-_.~" if encode_slash else "-_.~/"
    return quote(value, safe=safe)


def canonical_query_string(params: Mapping[str, str]) -> str:
    """Encode, then sort by encoded key (and value), then join with '&'."""
    pairs = sorted((uri_encode(str(k)), uri_encode(str(v))) for k, v in params.items())
    return "&".join(f"{key}={value}" for key, value in pairs)


def _normalize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    # Lowercase trimmed names, trimmed values with inner whitespace collapsed
    return {
        name.strip().lower(): " ".join(str(value).split())
        for name, value in headers.items()
    }


def signed_header_names(headers: Mapping[str, str]) -> str:
    """The ';'-joined, alphabetically sorted list of header names."""
    return ";".join(sorted(_normalize_headers(headers)))


def canonical_headers_block(headers: Mapping[str, str]) -> str:
    normalized = _normalize_headers(headers)
    return "".join(f"{name}:{normalized[name]}\n" for name in sorted(normalized))


def sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CanonicalRequest:
    """The SigV4 canonical request. Lives for one signing call only."""
    method: str
    path: str
    query_string: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str = UNSIGNED_PAYLOAD

    @property
    def text(self) -> str:
        # canonical_headers already ends in "\n", which produces the
        # blank line SigV4 expects before the signed headers list
        return "\n".join([
            self.method,
            self.path,
            self.query_string,
            self.canonical_headers,
            self.signed_headers,
            self.payload_hash,
        ])

    @property
    def digest(self) -> str:
        """Hex SHA-256 of the canonical request (canonicalRequestHash)."""
        return sha256_hex(self.text)


def build_canonical_request(
    method: str,
    path: str,
    query_params: Mapping[str, str],
    headers: Mapping[str, str],
) -> CanonicalRequest:
    """
    Assemble the canonical request for a presigned URL.

    The payload hash is always UNSIGNED-PAYLOAD: presigned URLs never
    commit to a body.
    """
    return CanonicalRequest(
        method=method.upper(),
        path=path,
        query_string=canonical_query_string(query_params),
        canonical_headers=canonical_headers_block(headers),
        signed_headers=signed_header_names(headers),
    )


# ---------------------------------------------------------------------------
# Signing material and key derivation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SigningMaterial:
    """Date, timestamp and scope for a single signature."""
    date_stamp: str
    amz_timestamp: str
    region: str = REGION
    service: str = SERVICE

    @property
    def credential_scope(self) -> str:
        return f"{self.date_stamp}/{self.region}/{self.service}/{SCOPE_TERMINATOR}"

    @classmethod
    def at(cls, now: Optional[datetime] = None) -> "SigningMaterial":
        """
        Stamp an instant. Naive datetimes are taken as UTC.

        The timestamp is ISO-8601 basic format without punctuation or
        milliseconds, e.g. 20240101T093000Z.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        else:
            now = now.astimezone(timezone.utc)

        return cls(
            date_stamp=now.strftime("%Y%m%d"),
            amz_timestamp=now.strftime("%Y%m%dT%H%M%SZ"),
        )


def build_string_to_sign(amz_timestamp: str, credential_scope: str, canonical_request_hash: str) -> str:
    return "\n".join([ALGORITHM, amz_timestamp, credential_scope, canonical_request_hash])


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret: str, date_stamp: str, region: str, service: str) -> bytes:
    """
    Run the four-step HMAC chain and return kSigning as raw bytes.

    Each step keys on the raw digest of the previous one. Keying on the
    hex form instead is a classic bug that produces a valid-looking but
    wrong signature.
    """
    key = f"AWS4{secret}".encode("utf-8")
    for step in (date_stamp, region, service, SCOPE_TERMINATOR):
        key = _hmac_sha256(key, step)
    return key


def derive_signature(
    secret: str,
    date_stamp: str,
    region: str,
    service: str,
    string_to_sign: str,
) -> str:
    """Hex signature of string_to_sign under the derived signing key."""
    try:
        signing_key = derive_signing_key(secret, date_stamp, region, service)
        return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
    except (TypeError, ValueError) as e:
        raise SigningComputationError(f"Signature computation failed: {e}") from e


# ---------------------------------------------------------------------------
# Presigned URL assembly
# ---------------------------------------------------------------------------

def _validate_request(method: str, file_key: str, expires_in: int) -> None:
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported method {method!r}; expected one of {SUPPORTED_METHODS}")
    if not file_key:
        raise ValueError("file_key must not be empty")
    if not 1 <= expires_in <= MAX_EXPIRES_IN:
        raise ValueError(f"expires_in must be between 1 and {MAX_EXPIRES_IN} seconds")


def build_presigned_url(
    method: str,
    file_key: str,
    content_type: Optional[str],
    config: StorageConfig,
    expires_in: int = DEFAULT_EXPIRES_IN,
    *,
    now: Optional[datetime] = None,
) -> str:
    """
    Build a SigV4 presigned URL for one object.

    For a PUT with a content type, content-type is signed alongside host,
    so the uploader must send exactly that Content-Type. Everything else
    signs host only.

    expires_in counts from the stamped timestamp. No clock skew correction
    is done here; the caller's and the store's clocks have to agree within
    the store's tolerance.

    Media players need HTTP range requests, which the public r2.dev mirror
    does not serve. Streaming GETs therefore always go through this signed
    form rather than the public prefix.
    """
    method = method.upper()
    _validate_request(method, file_key, expires_in)

    material = SigningMaterial.at(now)

    headers = {"host": config.endpoint_host}
    if method == "PUT" and content_type:
        headers["content-type"] = content_type

    query_params = {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": f"{config.access_key_id}/{material.credential_scope}",
        "X-Amz-Date": material.amz_timestamp,
        "X-Amz-Expires": str(expires_in),
        "X-Amz-SignedHeaders": signed_header_names(headers),
    }

    path = uri_encode(config.object_path(file_key), encode_slash=False)
    canonical = build_canonical_request(method, path, query_params, headers)
    string_to_sign = build_string_to_sign(
        material.amz_timestamp,
        material.credential_scope,
        canonical.digest,
    )
    signature = derive_signature(
        config.secret_access_key,
        material.date_stamp,
        material.region,
        material.service,
        string_to_sign,
    )

    logger.debug(
        "Built presigned URL",
        extra={
            "method": method,
            "file_key": file_key,
            "expires_in": expires_in,
            "signed_headers": query_params["X-Amz-SignedHeaders"],
        }
    )

    return f"{config.endpoint_url}{path}?{canonical.query_string}&X-Amz-Signature={signature}"
