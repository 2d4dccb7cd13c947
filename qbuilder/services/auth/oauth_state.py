# qbuilder/services/auth/oauth_state.py
"""
Single-use OAuth ``state`` nonces.

Issuing a nonce records which provider and redirect URI it was minted for;
the callback must present the same pair before the TTL elapses. A nonce is
removed the first time it is looked up, whether or not it matches.
"""
import secrets
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from qbuilder.core.config import OAUTH_STATE_TTL_SECONDS


@dataclass(frozen=True)
class OAuthStateEntry:
    provider: str
    redirect_uri: str
    expires_at: float


class OAuthStateStore:
    def __init__(
        self,
        ttl_seconds: int = OAUTH_STATE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, OAuthStateEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def issue(self, provider: str, redirect_uri: str) -> str:
        state = secrets.token_urlsafe(32)
        entry = OAuthStateEntry(
            provider=provider,
            redirect_uri=redirect_uri,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            self._purge_locked()
            self._entries[state] = entry
        return state

    def consume(self, state: str, provider: str, redirect_uri: str) -> bool:
        with self._lock:
            entry = self._entries.pop(state, None)

        if entry is None:
            return False
        if entry.expires_at <= self._clock():
            return False
        # compare_digest only accepts ASCII str, so compare the encoded bytes
        return secrets.compare_digest(
            entry.provider.encode(), provider.encode()
        ) and secrets.compare_digest(entry.redirect_uri.encode(), redirect_uri.encode())

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_locked(self) -> int:
        now = self._clock()
        stale = [k for k, e in self._entries.items() if e.expires_at <= now]
        for k in stale:
            del self._entries[k]
        return len(stale)


oauth_state_store = OAuthStateStore()
