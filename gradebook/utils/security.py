"""Password hashing and bearer token helpers."""

import base64
import hashlib
import hmac
import json
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from gradebook.config import get_settings

HASH_ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Salted PBKDF2-SHA256 hash: ``pbkdf2_sha256$<iterations>$<salt>$<digest>``."""
    iterations = iterations or get_settings().password_hash_iterations
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return "{}${}${}${}".format(
        HASH_ALGORITHM,
        iterations,
        base64.b64encode(salt).decode("ascii"),
        base64.b64encode(digest).decode("ascii"),
    )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of ``plain_password`` against a stored hash."""
    parts = (hashed_password or "").split("$")
    if len(parts) != 4 or parts[0] != HASH_ALGORITHM:
        return False
    _, iter_text, salt_text, digest_text = parts
    try:
        iterations = int(iter_text)
        salt = base64.b64decode(salt_text.encode("ascii"), validate=True)
        expected = base64.b64decode(digest_text.encode("ascii"), validate=True)
    except ValueError:
        return False
    computed = hashlib.pbkdf2_hmac(
        "sha256", plain_password.encode("utf-8"), salt, max(1, iterations)
    )
    return hmac.compare_digest(computed, expected)


def create_token(principal_id: str, role: str, version: int = 0) -> str:
    """Sign ``{sub, role, ver, exp}`` with the configured secret.

    ``ver`` is the account's token version at login; bumping it on the
    account invalidates every token issued before.
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.token_expire_hours)
    payload = {"sub": principal_id, "role": role, "ver": version, "exp": expire.isoformat()}
    payload_b64 = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()
    signature = hmac.new(
        settings.secret_key.encode(), payload_b64.encode(), hashlib.sha256
    ).hexdigest()
    return f"{payload_b64}.{signature}"


def decode_token(token: str) -> Optional[dict]:
    """Return the payload of a valid, unexpired token, else ``None``."""
    parts = token.split(".")
    if len(parts) != 2:
        return None
    payload_b64, signature = parts
    expected_sig = hmac.new(
        get_settings().secret_key.encode(), payload_b64.encode(), hashlib.sha256
    ).hexdigest()
    if not hmac.compare_digest(signature, expected_sig):
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(payload_b64).decode())
        exp = datetime.fromisoformat(payload["exp"])
    except (ValueError, KeyError, TypeError):
        return None
    if datetime.now(timezone.utc) > exp:
        return None
    return payload
