"""Authentication and connectivity capabilities consumed by the sync engine."""

from typing import Callable, Optional, Protocol

import httpx
import structlog

from .remote import RemoteError

logger = structlog.get_logger()

Listener = Callable[[bool], None]
Unsubscribe = Callable[[], None]


class AuthSession(Protocol):
    """Yields a stable user id, or None when nobody is signed in."""

    def has_session(self) -> bool: ...

    async def user_id(self) -> Optional[str]: ...


class _Listeners:
    def __init__(self):
        self._callbacks: list[Listener] = []

    def subscribe(self, callback: Listener) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def emit(self, value: bool) -> None:
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception as e:
                logger.warning("listener_error", callback=getattr(callback, "__name__", "?"), error=str(e))


class MagicLinkAuth:
    """Email magic-link sessions against a GoTrue (Supabase Auth) endpoint.

    The access token arrives out of band (the emailed link's callback) and is
    handed over with ``set_session``. Listeners receive True on sign-in and
    False on sign-out.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: Optional[str] = None,
        redirect_to: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.redirect_to = redirect_to
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._access_token = access_token
        self._user_id: Optional[str] = None
        self._listeners = _Listeners()

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    def has_session(self) -> bool:
        """True while a token is held. No network call, so it holds offline too."""
        return self._access_token is not None

    def on_change(self, callback: Listener) -> Unsubscribe:
        return self._listeners.subscribe(callback)

    def _headers(self, token: Optional[str] = None) -> dict:
        return {"apikey": self.anon_key, "Authorization": f"Bearer {token or self.anon_key}"}

    async def sign_in_with_link(self, email: str) -> None:
        """Ask the auth service to email a one-time sign-in link."""
        payload = {"email": email, "create_user": True}
        params = {"redirect_to": self.redirect_to} if self.redirect_to else None
        try:
            response = await self.client.post(
                f"{self.base_url}/otp", json=payload, params=params, headers=self._headers()
            )
        except httpx.RequestError as e:
            raise RemoteError(f"Could not reach auth service: {e}", code="network")
        if response.status_code >= 400:
            raise RemoteError(f"Sign-in link request failed: HTTP {response.status_code}", status=response.status_code)
        logger.info("auth.link_sent", email=email)

    def set_session(self, access_token: str) -> None:
        was_signed_in = self._access_token is not None
        self._access_token = access_token
        self._user_id = None
        if not was_signed_in:
            self._listeners.emit(True)

    async def user_id(self) -> Optional[str]:
        """Resolve the signed-in user's id; None when there is no valid session."""
        if not self._access_token:
            return None
        if self._user_id:
            return self._user_id
        try:
            response = await self.client.get(
                f"{self.base_url}/user", headers=self._headers(self._access_token)
            )
        except httpx.RequestError as e:
            logger.warning("auth.user_lookup_failed", error=str(e))
            return None
        if response.status_code in (401, 403):
            logger.info("auth.session_expired")
            self._clear()
            return None
        if response.status_code >= 400:
            logger.warning("auth.user_lookup_failed", status=response.status_code)
            return None
        self._user_id = response.json().get("id")
        return self._user_id

    async def sign_out(self) -> None:
        if not self._access_token:
            return
        try:
            await self.client.post(f"{self.base_url}/logout", headers=self._headers(self._access_token))
        except httpx.RequestError as e:
            logger.warning("auth.sign_out_remote_failed", error=str(e))
        self._clear()

    def _clear(self) -> None:
        had_session = self._access_token is not None
        self._access_token = None
        self._user_id = None
        if had_session:
            self._listeners.emit(False)

    async def close(self):
        await self.client.aclose()


class Connectivity:
    """Current online/offline state plus transition events.

    Listeners fire only on an actual change of state.
    """

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners = _Listeners()

    @property
    def online(self) -> bool:
        return self._online

    def subscribe(self, callback: Listener) -> Unsubscribe:
        return self._listeners.subscribe(callback)

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info("connectivity.changed", online=online)
        self._listeners.emit(online)

    async def probe(self, url: str, client: httpx.AsyncClient, timeout: float = 5.0) -> bool:
        """Check reachability with a HEAD request and update state."""
        try:
            await client.head(url, timeout=timeout)
            reachable = True
        except httpx.RequestError:
            reachable = False
        self.set_online(reachable)
        return reachable
