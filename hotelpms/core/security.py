import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import bcrypt
import jwt
import redis
from fastapi import HTTPException, Request, status

from hotelpms.core.config import get_settings

settings = get_settings()

AUTH_COOKIE = "access_token"

# Simple Redis-backed rate limiter with in-memory fallback
_RATE_LIMIT_BUCKETS: Dict[str, tuple[int, float]] = {}
_rate_limit_lock = threading.RLock()
_redis = None
try:
    _redis = redis.from_url(settings.redis_url, socket_connect_timeout=1)
except Exception:
    _redis = None


def rate_limit(key: str, limit: int, window_seconds: int = 60) -> None:
    # Prefer Redis for cross-process safety
    if _redis:
        try:
            count = _redis.incr(key, 1)
            _redis.expire(key, window_seconds)
            if count > limit:
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Too many requests, slow down.",
                )
            return
        except HTTPException:
            raise
        except Exception:
            pass  # fallback to in-memory on Redis connection errors

    with _rate_limit_lock:
        now = time.time()
        if len(_RATE_LIMIT_BUCKETS) > 100:
            expired = [k for k, (_, exp) in _RATE_LIMIT_BUCKETS.items() if now > exp]
            for k in expired:
                del _RATE_LIMIT_BUCKETS[k]
        count, reset_at = _RATE_LIMIT_BUCKETS.get(key, (0, now + window_seconds))
        if now > reset_at:
            count = 0
            reset_at = now + window_seconds
        count += 1
        _RATE_LIMIT_BUCKETS[key] = (count, reset_at)
    if count > limit:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, slow down.",
        )


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    user_id: int, email: str, role: str, expires_minutes: Optional[int] = None
) -> str:
    """Create a JWT access token. Default expiry is one shift-length day (ACCESS_TOKEN_MINUTES)."""
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        )


def get_bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return None


def get_request_token(request: Request) -> Optional[str]:
    """Bearer header for API clients, HttpOnly cookie for the browser UI."""
    return get_bearer_token(request) or request.cookies.get(AUTH_COOKIE)
