"""
Session Manager - lifecycle of one authenticated login

The SessionManager owns the session record, the expiry watchdog and the
policy for renewing or terminating a session. UI collaborators (login,
signup and profile screens) call into it and observe its state through
subscribe()/open_channel().

State machine:

    NO_SESSION    --begin()/restore-->           ACTIVE
    ACTIVE        --tick, inside warning window--> EXPIRING_SOON
    ACTIVE|EXPIRING_SOON --refresh()-->           REFRESHING
    REFRESHING    --exchange succeeded-->         ACTIVE
    REFRESHING    --exchange failed-->            EXPIRED
    ACTIVE|EXPIRING_SOON --tick, past expiry-->   EXPIRED
    EXPIRED       --begin()-->                    ACTIVE
    any           --end()-->                      LOGGED_OUT --> NO_SESSION

Concurrency model: one owner event loop per manager. All state changes run
on that loop; the session record is replaced wholesale (copy-on-write), so a
reader never observes a half-updated Session while a refresh is suspended.
At most one refresh exchange is in flight; results that arrive after end()
or a new begin() are discarded. Every identity provider call is bounded by
provider_timeout_seconds.

Pattern: Service layer over injected ports (IdentityProvider, CredentialStore,
BiometricGate)
Pattern: Observer for state-change notifications
"""

import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, TypeVar

from auth_session.core.config import get_settings
from auth_session.core.exceptions import (
    AuthError,
    InvalidCredentialError,
    ProviderTimeoutError,
    RefreshFailedError,
    RefreshInProgressError,
)
from auth_session.models import domain
from auth_session.models.domain import (
    Credentials,
    ExpiryStatus,
    Session,
    SessionEvent,
    SessionState,
    TeardownReport,
    UserProfile,
    utcnow,
)
from auth_session.observability.logging import get_logger, session_log_context
from auth_session.observability.metrics import (
    record_provider_call,
    record_refresh,
    record_teardown_failure,
    record_transition,
)
from auth_session.providers.base import BiometricGate, IdentityProvider
from auth_session.sessions.events import (
    DEFAULT_CHANNEL_SIZE,
    SessionEventBus,
    SessionEventChannel,
    SessionListener,
    Subscription,
)
from auth_session.sessions.store import CredentialStore
from auth_session.sessions.validation import validate_login_form, validate_signup_form
from auth_session.sessions.watchdog import WatchdogTimer

logger = get_logger(__name__)

T = TypeVar("T")

# States in which the credential is usable and the watchdog is watching.
_LIVE_STATES = frozenset({SessionState.ACTIVE, SessionState.EXPIRING_SOON})


class SessionManager:
    """
    Service layer for session lifecycle management.

    Args:
        identity_provider: Performs login/signup/refresh/revoke exchanges.
        credential_store: Persists the bundle for "remember me".
        watchdog: Expiry timer. Defaults to a WatchdogTimer at
            settings.watchdog_interval_seconds.
        biometric_gate: Optional precondition for restore_if_available().
        event_bus: Listener registry. Defaults to a private SessionEventBus.
        warning_window_seconds: Width of the expiring-soon window.
        provider_timeout_seconds: Bound on every identity provider call.
        revoke_on_logout: Revoke at the provider during end().
        biometric_prompt: Default prompt for the biometric gate.
        clock: Returns the current tz-aware time. Defaults to UTC now.

    Example:
        >>> manager = SessionManager(provider, MemoryCredentialStore())
        >>> session = await manager.login("a@example.com", "secret123", remember_me=True)
        >>> manager.current_state()
        <SessionState.ACTIVE: 'active'>
        >>> await manager.end()
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        credential_store: CredentialStore,
        watchdog: Optional[WatchdogTimer] = None,
        biometric_gate: Optional[BiometricGate] = None,
        event_bus: Optional[SessionEventBus] = None,
        warning_window_seconds: Optional[float] = None,
        provider_timeout_seconds: Optional[float] = None,
        revoke_on_logout: Optional[bool] = None,
        biometric_prompt: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        settings = get_settings()
        self._identity_provider = identity_provider
        self._credential_store = credential_store
        self._watchdog = watchdog if watchdog is not None else WatchdogTimer()
        self._biometric_gate = biometric_gate
        self._events = event_bus if event_bus is not None else SessionEventBus()
        self._warning_window = timedelta(
            seconds=warning_window_seconds
            if warning_window_seconds is not None
            else settings.warning_window_seconds
        )
        self._provider_timeout_seconds = (
            provider_timeout_seconds
            if provider_timeout_seconds is not None
            else settings.provider_timeout_seconds
        )
        self._revoke_on_logout = (
            revoke_on_logout if revoke_on_logout is not None else settings.revoke_on_logout
        )
        self._biometric_prompt = biometric_prompt or settings.biometric_prompt
        self._clock = clock or utcnow

        self._session: Optional[Session] = None
        self._state = SessionState.NO_SESSION
        # Bumped whenever the session is replaced or ended; an in-flight
        # refresh started under an older generation is discarded.
        self._generation = 0
        self._refresh_task: Optional[asyncio.Task[Session]] = None

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def session(self) -> Optional[Session]:
        """The last durable session record, or None."""
        return self._session

    @property
    def warning_window(self) -> timedelta:
        return self._warning_window

    @property
    def watchdog(self) -> WatchdogTimer:
        return self._watchdog

    @property
    def events(self) -> SessionEventBus:
        return self._events

    @property
    def refresh_in_progress(self) -> bool:
        """Whether a refresh exchange is in flight."""
        return self._refresh_task is not None and not self._refresh_task.done()

    def current_state(self) -> SessionState:
        """
        Current lifecycle state.

        A live session whose expiry has passed is moved to EXPIRED here even
        if the watchdog has not ticked yet.
        """
        session = self._session
        if session is not None and self._state in _LIVE_STATES:
            try:
                now = self._clock()
            except Exception as e:
                logger.warning("clock_read_failed", error=str(e))
                return self._state
            if session.expires_at <= now:
                self._expire(session, reason="expired")
        return self._state

    def current_session(self) -> Optional[Session]:
        """The session record after applying the expiry check, or None."""
        self.current_state()
        return self._session

    def check_expiry(self, now: Optional[datetime] = None) -> ExpiryStatus:
        """
        Classify the current session against `now` without side effects.

        Returns EXPIRED when there is no session or the session has already
        been marked EXPIRED (e.g. after a failed refresh).
        """
        session = self._session
        if session is None or self._state is SessionState.EXPIRED:
            return ExpiryStatus.EXPIRED
        return domain.check_expiry(
            session.expires_at,
            now if now is not None else self._clock(),
            self._warning_window,
        )

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, listener: SessionListener) -> Subscription:
        """Register a listener for SessionEvent notifications."""
        return self._events.subscribe(listener)

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a listener registered with subscribe()."""
        return self._events.unsubscribe(subscription)

    def open_channel(self, maxsize: int = DEFAULT_CHANNEL_SIZE) -> SessionEventChannel:
        """Open a polled channel of SessionEvent notifications."""
        return self._events.open_channel(maxsize=maxsize)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def begin(self, credentials: Credentials, remember_me: bool = False) -> Session:
        """
        Start a session from a freshly issued credential bundle.

        Args:
            credentials: Bundle returned by the identity provider.
            remember_me: Persist the bundle so the session survives restarts.

        Returns:
            The new ACTIVE session.

        Raises:
            InvalidCredentialError: If the bundle has no expiry or has
                already expired. The existing session is left untouched.
        """
        now = self._clock()
        expires_at = self._require_expiry(credentials, now)
        session = self._activate(credentials, expires_at, remember_me, now)

        with session_log_context(session.id):
            logger.info(
                "session_started",
                remember_me=remember_me,
                expires_at=expires_at.isoformat(),
            )
            if remember_me:
                await self._persist(credentials)
            else:
                await self._forget_stored_credentials()
        return session

    def tick(self, now: Optional[datetime] = None) -> SessionState:
        """
        Watchdog check: advance ACTIVE -> EXPIRING_SOON -> EXPIRED.

        Skipped while refreshing or when no session is live. A failure to
        read the clock keeps the previous state.

        Returns:
            The state after the check.
        """
        session = self._session
        if session is None or self._state not in _LIVE_STATES:
            return self._state

        if now is None:
            try:
                now = self._clock()
            except Exception as e:
                logger.warning("watchdog_clock_failed", error=str(e))
                return self._state

        status = domain.check_expiry(session.expires_at, now, self._warning_window)
        if status is ExpiryStatus.EXPIRED:
            self._expire(session, reason="expired")
        elif status is ExpiryStatus.EXPIRING_SOON and self._state is SessionState.ACTIVE:
            with session_log_context(session.id):
                logger.info(
                    "session_expiring_soon",
                    seconds_remaining=int(session.time_remaining(now).total_seconds()),
                )
            self._transition(
                SessionState.EXPIRING_SOON, session.with_state(SessionState.EXPIRING_SOON)
            )
        return self._state

    async def refresh(self, wait: bool = True) -> Session:
        """
        Renew the session through the identity provider.

        Only one exchange runs at a time. A concurrent caller shares the
        in-flight result, or gets RefreshInProgressError when wait=False.

        Returns:
            The refreshed ACTIVE session, with a strictly later expires_at.

        Raises:
            RefreshInProgressError: If wait=False and a refresh is in flight.
            RefreshFailedError: If there is no live session, the exchange
                failed or timed out (ProviderTimeoutError), or the session was
                ended while the exchange was in flight. Except in the first and
                last case the session is now EXPIRED.
        """
        in_flight = self._refresh_task
        if in_flight is not None and not in_flight.done():
            if not wait:
                raise RefreshInProgressError()
            return await asyncio.shield(in_flight)

        state = self.current_state()
        session = self._session
        if session is None or state not in _LIVE_STATES:
            if state is SessionState.EXPIRED:
                raise RefreshFailedError("Session has expired; sign in again", state=state)
            raise RefreshFailedError("No active session to refresh", state=state)

        self._transition(SessionState.REFRESHING, session.with_state(SessionState.REFRESHING))
        task = asyncio.get_running_loop().create_task(
            self._run_refresh(session, self._generation), name="session-refresh"
        )
        self._refresh_task = task
        return await asyncio.shield(task)

    async def end(self) -> None:
        """
        Log out. Always succeeds locally and is idempotent.

        The watchdog stops and the state becomes NO_SESSION immediately;
        provider revocation and credential clearing follow as best-effort
        steps whose failures are only logged.
        """
        session = self._session
        self._supersede()
        generation = self._generation

        if session is not None:
            self._transition(SessionState.LOGGED_OUT, session.with_state(SessionState.LOGGED_OUT))
            self._transition(SessionState.NO_SESSION, None)

        report = TeardownReport()
        with session_log_context(session.id if session is not None else None):
            if session is not None and self._revoke_on_logout:
                try:
                    await self._call_provider(
                        "revoke", self._identity_provider.revoke(session.credentials)
                    )
                    report.record("revoke")
                except Exception as e:
                    report.record("revoke", e)

            # A session begun while revoking owns the store now.
            if generation == self._generation:
                try:
                    await self._credential_store.clear()
                    report.record("clear_credentials")
                except Exception as e:
                    report.record("clear_credentials", e)

            for failure in report.failures:
                record_teardown_failure(failure.name)
            if report.ok:
                logger.info("session_ended", steps=[step.name for step in report.steps])
            else:
                logger.warning(
                    "session_ended_with_errors",
                    failures=[step.model_dump() for step in report.failures],
                )

    async def restore_if_available(self, prompt: Optional[str] = None) -> Optional[Session]:
        """
        Auto-login from the remembered credential bundle.

        When a biometric gate is configured it must pass first; an
        unavailable gate or a rejected prompt leaves the stored bundle
        untouched. Never raises.

        Args:
            prompt: Biometric prompt override.

        Returns:
            The restored (or already live) session, or None.
        """
        if self._state in _LIVE_STATES or self._state is SessionState.REFRESHING:
            return self._session

        try:
            if self._biometric_gate is not None and not await self._passes_biometric_gate(prompt):
                return None

            credentials = await self._credential_store.load()
            if credentials is None:
                logger.info("no_stored_credentials")
                return None

            now = self._clock()
            try:
                expires_at = self._require_expiry(credentials, now)
            except InvalidCredentialError as e:
                logger.info("stored_credentials_unusable", reason=e.message)
                return None

            if self._state in _LIVE_STATES:
                return self._session

            session = self._activate(credentials, expires_at, True, now)
            with session_log_context(session.id):
                logger.info("session_restored", expires_at=expires_at.isoformat())
            return session
        except Exception as e:
            logger.warning("session_restore_failed", error=str(e), exc_info=True)
            return None

    def close(self) -> None:
        """Release the watchdog without logging out."""
        self._watchdog.cancel()

    # =========================================================================
    # Authentication flows
    # =========================================================================

    async def login(self, email: str, password: str, remember_me: bool = False) -> Session:
        """
        Authenticate with email and password, then begin a session.

        Raises:
            CredentialValidationError: If a field is empty.
            AuthError: If the provider rejects the login or times out.
            InvalidCredentialError: If the issued bundle is unusable.
        """
        validate_login_form(email, password)
        credentials = await self._authenticate(
            "login", lambda: self._identity_provider.login(email, password)
        )
        return await self.begin(credentials, remember_me=remember_me)

    async def login_with_provider(self, provider_id: str, remember_me: bool = False) -> Session:
        """
        Authenticate through a federated connection, then begin a session.

        Raises:
            AuthError: If the federated login fails or times out.
            InvalidCredentialError: If the issued bundle is unusable.
        """
        credentials = await self._authenticate(
            "login_with_provider",
            lambda: self._identity_provider.login_with_provider(provider_id),
        )
        return await self.begin(credentials, remember_me=remember_me)

    async def signup(
        self,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
        remember_me: bool = False,
    ) -> Session:
        """
        Create an account, then begin a session with it.

        Raises:
            CredentialValidationError: If the form input is rejected.
            AuthError: If the provider refuses the signup or times out.
            InvalidCredentialError: If the issued bundle is unusable.
        """
        validate_signup_form(email, password, confirm_password)
        credentials = await self._authenticate(
            "signup", lambda: self._identity_provider.signup(email, password)
        )
        return await self.begin(credentials, remember_me=remember_me)

    async def user_profile(self) -> Optional[UserProfile]:
        """Profile of the signed-in user, or None. Never raises."""
        session = self._session
        state = self.current_state()
        if session is None or state not in (*_LIVE_STATES, SessionState.REFRESHING):
            return None

        try:
            return await self._call_provider(
                "user_profile", self._identity_provider.user_profile(session.credentials)
            )
        except Exception as e:
            with session_log_context(session.id):
                logger.warning("user_profile_failed", error=str(e))
            return None

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _require_expiry(credentials: Credentials, now: datetime) -> datetime:
        if credentials.expires_at is None:
            raise InvalidCredentialError("Credential bundle has no expiry")
        if credentials.expires_at <= now:
            raise InvalidCredentialError(
                "Credential bundle has already expired",
                expires_at=credentials.expires_at,
            )
        return credentials.expires_at

    def _supersede(self) -> None:
        """Stop the watchdog and orphan any in-flight refresh."""
        self._generation += 1
        self._refresh_task = None
        self._watchdog.cancel()

    def _activate(
        self,
        credentials: Credentials,
        expires_at: datetime,
        remember_me: bool,
        now: datetime,
    ) -> Session:
        self._supersede()
        session = Session(
            credentials=credentials,
            expires_at=expires_at,
            remember_me=remember_me,
            state=SessionState.ACTIVE,
            started_at=now,
        )
        self._transition(SessionState.ACTIVE, session)
        self._watchdog.start(self.tick)
        # A bundle issued close to expiry starts out expiring soon.
        self.tick(now)
        return self._session

    def _expire(self, session: Session, reason: str) -> None:
        self._watchdog.cancel()
        self._transition(SessionState.EXPIRED, session.with_state(SessionState.EXPIRED))
        with session_log_context(session.id):
            logger.info("session_expired", reason=reason)

    def _transition(self, new_state: SessionState, session: Optional[Session]) -> None:
        old_state = self._state
        self._session = session
        self._state = new_state
        record_transition(old_state.value, new_state.value)
        logger.debug(
            "session_transition", old_state=old_state.value, new_state=new_state.value
        )
        self._events.publish(
            SessionEvent(old_state=old_state, new_state=new_state, session=session)
        )

    async def _run_refresh(self, session: Session, generation: int) -> Session:
        try:
            with session_log_context(session.id):
                try:
                    credentials, now = await self._exchange_refresh(session)
                except Exception as e:
                    if generation != self._generation:
                        record_refresh("discarded")
                        raise RefreshFailedError(
                            "Session ended while the refresh was in flight"
                        ) from e
                    record_refresh("failure")
                    logger.warning("session_refresh_failed", error=str(e))
                    self._expire(session, reason="refresh_failed")
                    if isinstance(e, RefreshFailedError):
                        raise
                    raise RefreshFailedError(f"Session refresh failed: {e}") from e

                if generation != self._generation:
                    record_refresh("discarded")
                    logger.info("session_refresh_discarded")
                    if self._revoke_on_logout:
                        await self._revoke_quietly(credentials)
                    raise RefreshFailedError("Session ended while the refresh was in flight")

                refreshed = session.model_copy(
                    update={
                        "credentials": credentials,
                        "expires_at": credentials.expires_at,
                        "state": SessionState.ACTIVE,
                        "refreshed_at": now,
                    }
                )
                self._transition(SessionState.ACTIVE, refreshed)
                self._watchdog.start(self.tick)
                record_refresh("success")
                logger.info("session_refreshed", expires_at=refreshed.expires_at.isoformat())

                if refreshed.remember_me:
                    await self._persist(credentials)
                return refreshed
        finally:
            if self._refresh_task is asyncio.current_task():
                self._refresh_task = None

    async def _exchange_refresh(self, session: Session) -> tuple[Credentials, datetime]:
        """Run the provider exchange; every failure surfaces as RefreshFailedError."""
        current = session.credentials
        if not current.can_refresh:
            raise RefreshFailedError("Session has no refresh token; sign in again")

        try:
            issued = await self._call_provider(
                "refresh", self._identity_provider.refresh(current)
            )
        except RefreshFailedError:
            raise
        except Exception as e:
            raise RefreshFailedError(f"Identity provider rejected the refresh: {e}") from e

        try:
            if not issued.refresh_token:
                issued = issued.model_copy(update={"refresh_token": current.refresh_token})
            now = self._clock()
            expires_at = self._require_expiry(issued, now)
        except Exception as e:
            raise RefreshFailedError(f"Refreshed credential is unusable: {e}") from e

        if expires_at <= session.expires_at:
            raise RefreshFailedError("Refreshed credential does not extend the session")
        return issued, now

    async def _authenticate(
        self, operation: str, call: Callable[[], Awaitable[Credentials]]
    ) -> Credentials:
        try:
            return await self._call_provider(operation, call())
        except AuthError as e:
            logger.warning("authentication_failed", operation=operation, error=e.message)
            raise
        except Exception as e:
            logger.warning("authentication_failed", operation=operation, error=str(e))
            raise AuthError(f"Failed to {operation.replace('_', ' ')}: {e}") from e

    async def _call_provider(self, operation: str, call: Awaitable[T]) -> T:
        timeout = self._provider_timeout_seconds
        try:
            result = await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            record_provider_call(operation, "timeout")
            logger.warning(
                "provider_call_timed_out", operation=operation, timeout_seconds=timeout
            )
            raise ProviderTimeoutError(
                f"Identity provider {operation} timed out after {timeout:g}s",
                operation=operation,
                timeout_seconds=timeout,
            ) from e
        except Exception:
            record_provider_call(operation, "error")
            raise
        record_provider_call(operation, "success")
        return result

    async def _revoke_quietly(self, credentials: Credentials) -> None:
        try:
            await self._call_provider("revoke", self._identity_provider.revoke(credentials))
        except Exception as e:
            logger.warning("orphaned_credentials_revoke_failed", error=str(e))

    async def _persist(self, credentials: Credentials) -> None:
        try:
            await self._credential_store.save(credentials)
        except Exception as e:
            logger.warning("credential_save_failed", error=str(e))

    async def _forget_stored_credentials(self) -> None:
        try:
            await self._credential_store.clear()
        except Exception as e:
            logger.warning("credential_clear_failed", error=str(e))

    async def _passes_biometric_gate(self, prompt: Optional[str]) -> bool:
        gate = self._biometric_gate
        try:
            if not await gate.is_available():
                logger.info("biometric_unavailable")
                return False
            authenticated = await gate.authenticate(prompt or self._biometric_prompt)
        except Exception as e:
            logger.warning("biometric_check_failed", error=str(e))
            return False

        if not authenticated:
            logger.info("biometric_rejected")
        return bool(authenticated)
