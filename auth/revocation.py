"""
auth/revocation.py -- In-memory registry of tokens revoked before expiry.

Logout adds the presented token here; the session gate rejects any token
found here even though its signature and expiry are still valid.

Scope and lifetime:
  One instance per application, created in the lifespan and stored on
  app.state.revocations. Tests build their own instance, so nothing leaks
  between test modules. Entries are never removed: a revoked token stops
  verifying on its own once its exp passes, so a stale entry is harmless.
  The set is lost on restart. That is a known limitation of a single-process
  deployment, not something this class tries to fix.

Thread safety:
  Sync route handlers run in FastAPI's thread pool, so add and lookup may
  race. A threading.Lock guards the set.

Layer rule: stdlib only.
"""

from __future__ import annotations

import threading


class RevocationRegistry:
    """Set of revoked token strings with O(1) membership.

    Usage:
        revocations = RevocationRegistry()
        revocations.revoke(token)
        revocations.is_revoked(token)  # True
    """

    def __init__(self) -> None:
        self._tokens: set[str] = set()
        self._lock = threading.Lock()

    def revoke(self, token: str | None) -> None:
        """Mark a token as revoked. Idempotent; empty or None is ignored."""
        if not token:
            return
        with self._lock:
            self._tokens.add(token)

    def is_revoked(self, token: str | None) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._tokens

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
