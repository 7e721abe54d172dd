import hashlib
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from storefront.core.config import get_settings
from storefront.core.exceptions import BadRequestError

SESSION_MAX_AGE = 7 * 24 * 3600


def get_session_serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(
        settings.secret_key,
        salt="storefront-session",
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def create_session_cookie(payload: dict[str, Any]) -> str:
    return get_session_serializer().dumps(payload)


def load_session_cookie(cookie_value: str, max_age_seconds: int = SESSION_MAX_AGE) -> dict[str, Any] | None:
    serializer = get_session_serializer()
    try:
        return serializer.loads(cookie_value, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None


def normalize_idempotency_key(key: str | None) -> str | None:
    """Strip a client Idempotency-Key header; blank means none, overlong is rejected."""
    if key is None or not key.strip():
        return None
    key = key.strip()
    if len(key) > 128:
        raise BadRequestError("Idempotency-Key must be at most 128 characters")
    return key
