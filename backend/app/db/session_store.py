"""
OAuth session store backed by Redis.

Sessions hold the Google tokens obtained from the OAuth callback, keyed
by an opaque session id. Redis TTL bounds the key lifetime; the token
expiry stored with the session is checked again on every read.

Usage:
    store = RedisSessionStore(redis.from_url(url), ttl_seconds=3600)
    session_id = store.create_session(tokens)
    session = store.get_session(session_id)  # None when missing or expired
"""

import json
import logging
import secrets
import time
from typing import Any, Dict, Optional

import redis

from app.core.exceptions import InternalError

logger = logging.getLogger("session_store")

REDIS_KEY_PREFIX = "publisher:session"
OAUTH_STATE_TTL_SECONDS = 600


class RedisSessionStore:
    def __init__(
        self,
        redis_client: redis.Redis,
        ttl_seconds: int = 3600,
        key_prefix: str = REDIS_KEY_PREFIX,
    ) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds
        self._prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}:{session_id}"

    @staticmethod
    def _new_session_id() -> str:
        return f"session_{int(time.time() * 1000)}_{secrets.token_hex(5)}"

    def create_session(self, tokens: Dict[str, Any]) -> str:
        """
        Store tokens and return the new session id.

        TTL is the shorter of the configured TTL and the token lifetime;
        tokens without expiry_date fall back to the configured TTL.
        """
        now_ms = int(time.time() * 1000)
        expires_at_ms = int(tokens.get("expiry_date") or now_ms + self._ttl * 1000)
        ttl = max(1, min(self._ttl, (expires_at_ms - now_ms) // 1000))

        session_id = self._new_session_id()
        payload = {
            "tokens": tokens,
            "authorized_at": now_ms,
            "expires_at": expires_at_ms,
        }
        try:
            self._redis.setex(self._key(session_id), ttl, json.dumps(payload))
        except redis.RedisError as e:
            logger.error(f"Redis error in create_session: {e}")
            raise InternalError("Session store unavailable") from e
        logger.info("session created session_id=%s ttl=%s", session_id, ttl)
        return session_id

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self._redis.get(self._key(session_id))
        except redis.RedisError as e:
            logger.error(f"Redis error in get_session: {e}")
            raise InternalError("Session store unavailable") from e
        if raw is None:
            return None

        session = json.loads(raw)
        if int(session.get("expires_at") or 0) <= int(time.time() * 1000):
            logger.info("session expired session_id=%s", session_id)
            self.delete_session(session_id)
            return None
        return session

    def delete_session(self, session_id: str) -> None:
        try:
            self._redis.delete(self._key(session_id))
        except redis.RedisError as e:
            logger.error(f"Redis error in delete_session: {e}")

    # ------------------------------------------------------------------
    # OAuth state (single use)
    # ------------------------------------------------------------------

    def _state_key(self, state: str) -> str:
        return f"{self._prefix}:state:{state}"

    def save_oauth_state(self, state: str, ttl_seconds: int = OAUTH_STATE_TTL_SECONDS) -> None:
        try:
            self._redis.setex(self._state_key(state), ttl_seconds, "1")
        except redis.RedisError as e:
            logger.error(f"Redis error in save_oauth_state: {e}")
            raise InternalError("Session store unavailable") from e

    def consume_oauth_state(self, state: str) -> bool:
        """True exactly once for a state issued by save_oauth_state."""
        try:
            return bool(self._redis.delete(self._state_key(state)))
        except redis.RedisError as e:
            logger.error(f"Redis error in consume_oauth_state: {e}")
            raise InternalError("Session store unavailable") from e
