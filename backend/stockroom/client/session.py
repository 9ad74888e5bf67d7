# Overview: Client-side session context: login state, profile cache and auth-change subscriptions.

"""
SessionContext

Holds the current session and the profile (joined with its company) for one
client. Owners call ``start()`` once and ``close()`` on teardown; listeners
subscribe with ``subscribe(callback)`` and are called as
``callback(event, session)`` for every auth state change.

On each state change that carries a session the profile is fetched exactly
once, before listeners are notified.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable

from ..permissions import ADMIN_ROLES
from .api import ApiClient, ApiError
from .results import ErrorKind
from .storage import LocalStorage

logger = logging.getLogger(__name__)

AUTH_STORAGE_KEY = "inventory-auth"


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


Listener = Callable[[AuthEvent, "dict | None"], "Awaitable[None] | None"]


class SessionContext:
    def __init__(self, api: ApiClient, storage: LocalStorage):
        self.api = api
        self.storage = storage

        self.session: dict | None = None
        self.user: dict | None = None
        self.profile: dict | None = None
        self.is_loading = True

        self._listeners: list[Listener] = []
        self._login_in_flight = False
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Restore a persisted session (if any) and emit INITIAL_SESSION."""
        if self._started:
            return
        self._started = True

        stored = self.storage.get_item(AUTH_STORAGE_KEY)
        session = stored if isinstance(stored, dict) and stored.get("token") else None
        if stored is not None and session is None:
            self.storage.remove_item(AUTH_STORAGE_KEY)

        if session is not None:
            self.api.token = session["token"]

        try:
            await self._on_auth_state_change(AuthEvent.INITIAL_SESSION, session)
        finally:
            self.is_loading = False

    async def close(self) -> None:
        self._listeners.clear()
        self._started = False

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Auth state
    # ------------------------------------------------------------------

    async def _fetch_profile(self) -> dict | None:
        data = await self.api.get("/api/auth/session")
        self.user = data.get("user")
        return data.get("profile")

    async def _on_auth_state_change(self, event: AuthEvent, session: dict | None) -> None:
        self.session = session
        self.profile = None

        if session is not None:
            try:
                self.profile = await self._fetch_profile()
            except ApiError as e:
                logger.error("Error fetching profile: %s", e)
                if e.kind == ErrorKind.UNAUTHORIZED:
                    # Persisted token is no longer valid
                    self._clear_local_state()
                    session = None
        else:
            self.user = None

        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

    def _clear_local_state(self) -> None:
        self.session = None
        self.user = None
        self.profile = None
        self.api.token = None
        self.storage.remove_item(AUTH_STORAGE_KEY)

    def _store_session(self, data: dict) -> dict:
        session = {
            "token": data["token"],
            "expires_at": (data.get("session") or {}).get("expires_at"),
            "user_id": (data.get("user") or {}).get("id"),
        }
        self.api.token = session["token"]
        self.storage.set_item(AUTH_STORAGE_KEY, session)
        return session

    async def login(self, identifier: str, password: str) -> bool:
        """
        Sign in with email or username.

        Returns False without a request if another login on this context is
        still in flight.
        """
        if self._login_in_flight:
            return False

        self._login_in_flight = True
        try:
            try:
                data = await self.api.post(
                    "/api/auth/login",
                    json={"identifier": identifier.strip(), "password": password},
                )
            except ApiError as e:
                logger.warning("Login failed for %s: %s", identifier, e)
                return False

            session = self._store_session(data)
            await self._on_auth_state_change(AuthEvent.SIGNED_IN, session)
            return True
        finally:
            self._login_in_flight = False

    async def refresh(self) -> bool:
        if self.session is None:
            return False
        try:
            data = await self.api.post("/api/auth/refresh")
        except ApiError as e:
            logger.warning("Token refresh failed: %s", e)
            return False

        session = self._store_session(data)
        await self._on_auth_state_change(AuthEvent.TOKEN_REFRESHED, session)
        return True

    async def logout(self) -> None:
        """Clear local state and the persisted key, then sign out remotely."""
        token = self.api.token
        self._clear_local_state()

        if token:
            try:
                await self.api.post("/api/auth/logout", token=token)
            except ApiError as e:
                logger.warning("Remote sign-out failed: %s", e)

        await self._on_auth_state_change(AuthEvent.SIGNED_OUT, None)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.profile) and self.profile.get("role") in ADMIN_ROLES

    def has_permission(self, permission: str) -> bool:
        if not self.profile:
            return False
        return permission in (self.profile.get("permissions") or [])

    def has_role(self, role: str) -> bool:
        return bool(self.profile) and self.profile.get("role") == role

