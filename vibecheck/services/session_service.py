# vibecheck/services/session_service.py
import atexit
import logging
from typing import Optional

from pydantic import ValidationError

from vibecheck.config import settings
from vibecheck.models.event import EventKind
from vibecheck.models.user import ProfileUpdate, UserProfile
from vibecheck.services.local_storage import KeyValueStorage, StorageError
from vibecheck.services.tracking_service import TrackingService

logger = logging.getLogger(__name__)


class SessionService:
    """Signed-in user lifecycle and the events it emits.

    Process exit plays the role of the browser tab closing: an atexit hook
    records SESSION_END while a session is open.
    """

    def __init__(
        self,
        tracker: TrackingService,
        storage: KeyValueStorage,
        user_key: str = settings.USER_PROFILE_KEY
    ):
        self.tracker = tracker
        self.storage = storage
        self.user_key = user_key
        self.user: Optional[UserProfile] = None
        self._hook_installed = False
        self._session_open = False

    # ==================== PERSISTENCE ====================

    def _load_profile(self) -> Optional[UserProfile]:
        try:
            raw = self.storage.get_item(self.user_key)
        except StorageError as e:
            logger.error(f"Failed to read saved profile: {e}")
            return None

        if not raw:
            return None

        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable saved profile: {e.error_count()} errors")
            return None

    def _save_profile(self, profile: UserProfile) -> None:
        try:
            self.storage.set_item(self.user_key, profile.model_dump_json(by_alias=True))
        except StorageError as e:
            logger.error(f"Failed to save profile for {profile.email}: {e}")

    def _clear_profile(self) -> None:
        try:
            self.storage.remove_item(self.user_key)
        except StorageError as e:
            logger.error(f"Failed to clear saved profile: {e}")

    # ==================== TEARDOWN HOOK ====================

    def _open_session(self) -> None:
        self._session_open = True
        if not self._hook_installed:
            atexit.register(self.end_session)
            self._hook_installed = True

    def _close_session(self) -> None:
        self._session_open = False
        if self._hook_installed:
            atexit.unregister(self.end_session)
            self._hook_installed = False

    # ==================== LIFECYCLE ====================

    def sign_up(self, profile: UserProfile) -> UserProfile:
        """Register a new user and open their first session"""
        self.user = profile
        self._save_profile(profile)

        self.tracker.record_event(EventKind.SIGN_UP, profile, "New user registration captured")
        self.tracker.record_event(EventKind.SESSION_START, profile, "Initial session after signup")
        self._open_session()

        logger.info(f"👤 Signed up {profile.email}")
        return profile

    def resume(self) -> Optional[UserProfile]:
        """Restore a saved user, if any, and open a session for them"""
        profile = self._load_profile()
        if profile is None:
            return None

        self.user = profile
        self.tracker.record_event(EventKind.LOGIN, profile, "User returned to session")
        self.tracker.record_event(EventKind.SESSION_START, profile, "App process started")
        self._open_session()
        return profile

    def update_profile(self, update: ProfileUpdate) -> Optional[UserProfile]:
        """Apply profile edits; events recorded afterwards carry the new values.

        Raises ValidationError if the merged profile is invalid.
        """
        if self.user is None:
            logger.warning("Profile update ignored: nobody is signed in")
            return None

        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return self.user

        # Raises ValidationError, leaving the current profile in place
        self.user = UserProfile.model_validate({**self.user.model_dump(), **changes})
        self._save_profile(self.user)

        summary = ", ".join(f"{k}={getattr(v, 'value', v)}" for k, v in changes.items())
        self.tracker.record_event(EventKind.STYLE_SAVED, self.user, f"Profile updated: {summary}")
        return self.user

    def logout(self) -> None:
        if self.user is None:
            return

        self.tracker.record_event(EventKind.LOGOUT, self.user, "User manually logged out")
        self.user = None
        self._close_session()
        self._clear_profile()

    def end_session(self) -> None:
        """Teardown hook: record that the session is closing"""
        if self.user is None or not self._session_open:
            return

        self._session_open = False
        self.tracker.record_event(EventKind.SESSION_END, self.user, "App process closed")
