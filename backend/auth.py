"""Arrest Map Backend — Identity & Admin Check

The identity provider is a black box that turns an ID token into a user (or
nothing). The only questions asked of a user are "is anyone signed in" and
"does their hashed email match the admin identity".
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from cache import token_cache
from config import ADMIN_EMAIL_HASH
from errors import NotAuthenticated, PermissionDenied, ServiceUnavailable

logger = logging.getLogger("arrestmap.auth")


@dataclass(frozen=True)
class User:
    email: str
    display_name: str = ""
    id_token: str = ""


def hash_email(email: str) -> str:
    return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()


def is_admin(user: Optional[User], admin_hash: str = ADMIN_EMAIL_HASH) -> bool:
    if user is None or not user.email:
        return False
    return hash_email(user.email) == admin_hash


class IdentityProvider:
    async def resolve(self, id_token: str) -> Optional[User]:
        raise NotImplementedError


class FirebaseIdentityProvider(IdentityProvider):
    """Looks ID tokens up with the Identity Toolkit `accounts:lookup` endpoint."""

    def __init__(self, api_key: str, lookup_url: str, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 15.0):
        self._api_key = api_key
        self._lookup_url = lookup_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def resolve(self, id_token: str) -> Optional[User]:
        if not id_token:
            return None
        cached = token_cache.get(id_token)
        if cached is not None:
            return cached

        try:
            r = await self._client.post(
                self._lookup_url,
                params={"key": self._api_key},
                json={"idToken": id_token},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Identity lookup error: {e}")
            raise ServiceUnavailable("Authentication service unavailable") from e

        if r.status_code == 400:
            # Expired or malformed token
            return None
        if r.status_code >= 400:
            logger.warning(f"Identity lookup returned {r.status_code}")
            raise ServiceUnavailable("Authentication service unavailable")

        users = r.json().get("users") or []
        if not users or not users[0].get("email"):
            return None
        info = users[0]
        user = User(email=info["email"], display_name=info.get("displayName", ""), id_token=id_token)
        token_cache.set(id_token, user)
        return user


async def require_user(identity: Optional[IdentityProvider], id_token: Optional[str]) -> User:
    if identity is None:
        raise ServiceUnavailable()
    user = await identity.resolve(id_token or "")
    if user is None:
        raise NotAuthenticated()
    return user


async def require_admin(identity: Optional[IdentityProvider], id_token: Optional[str]) -> User:
    user = await require_user(identity, id_token)
    if not is_admin(user):
        logger.warning("Write attempted by a non-admin user")
        raise PermissionDenied()
    return user


# ─────────────────────────── Session & Observers ────────────────

AuthListener = Callable[[Optional[User]], None]


class AuthSession:
    """Current sign-in state with a registry of change listeners.

    Listeners run synchronously, in registration order, on every change. A
    listener that raises is logged and the remaining listeners still run.
    """

    def __init__(self, identity: IdentityProvider):
        self._identity = identity
        self._listeners: list[AuthListener] = []
        self.current_user: Optional[User] = None
        self.is_admin = False

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def on_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        if not callable(listener):
            raise TypeError("listener must be callable")
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self.current_user)
            except Exception as e:
                logger.warning(f"Auth listener {getattr(listener, '__name__', listener)!r} failed: {e}")

    def _set_user(self, user: Optional[User]):
        self.current_user = user
        self.is_admin = is_admin(user)
        self._notify()

    async def sign_in(self, id_token: str) -> Optional[User]:
        user = await self._identity.resolve(id_token)
        self._set_user(user)
        return user

    def sign_out(self):
        if self.current_user is not None and self.current_user.id_token:
            token_cache.delete(self.current_user.id_token)
        self._set_user(None)
