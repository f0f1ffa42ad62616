# vibecheck/services/tracking_service.py
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from vibecheck.config import settings
from vibecheck.models.event import ClientEnvironment, EventContext, EventKind, EventRecord
from vibecheck.models.user import UserProfile
from vibecheck.services.event_transport import EventTransport, HttpEventTransport
from vibecheck.services.local_storage import EventLogStore, StorageError, create_storage
from vibecheck.utils.helpers import export_filename, host_environment, utc_now

logger = logging.getLogger(__name__)


def _utf8_safe(text: str) -> str:
    """Replace lone surrogates, which cannot be written as JSON"""
    return text.encode("utf-8", "replace").decode("utf-8")


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    content: str


class TrackingService:
    """Records analytics events locally and syncs them to the collector.

    Telemetry must never break the user flow: storage and delivery failures
    are logged and dropped, nothing is retried or queued.
    """

    def __init__(
        self,
        store: EventLogStore,
        transport: Optional[EventTransport] = None,
        environment: Callable[[], ClientEnvironment] = host_environment
    ):
        self.store = store
        self.transport = transport
        self.environment = environment
        self._lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None

    def _timestamp(self) -> datetime:
        now = utc_now()
        # Wall clock may step backwards; emission order may not
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def _build_context(
        self,
        user: Optional[UserProfile],
        environment: Optional[ClientEnvironment]
    ) -> EventContext:
        env = environment or self.environment()
        return EventContext(
            platform=env.platform,
            user_agent=env.user_agent,
            language=env.language,
            screen_resolution=env.screen_resolution,
            body_type=user.body_type if user else None,
            style_vibe=user.style_vibe if user else None,
            is_pwa=env.is_pwa,
            connection_type=env.connection_type or "unknown",
        )

    def _append(self, record: EventRecord) -> None:
        try:
            current = self.store.get()
            current.append(record)
            self.store.set(current)
        except StorageError as e:
            logger.error(f"[EXTRACTION ERROR]: {record.action.value} event not persisted locally: {e}")
        except Exception as e:
            # Injected storage may fail in ways of its own
            logger.error(f"[EXTRACTION ERROR]: Unexpected storage failure for {record.action.value} event: {e}", exc_info=True)

    def _deliver(self, record: EventRecord) -> None:
        if self.transport is None:
            return

        try:
            if record.action.is_session_terminating:
                self.transport.send_durable(record)
            else:
                self.transport.send(record)
        except Exception as e:
            logger.warning(f"[EXTRACTION ERROR]: Failed to sync event: {e}")

    def record_event(
        self,
        kind: Union[EventKind, str],
        user: Optional[UserProfile],
        details: str = "",
        environment: Optional[ClientEnvironment] = None
    ) -> EventRecord:
        """
        Record one analytics event

        Args:
            kind: Event kind; anything outside EventKind raises ValueError
            user: Acting user, read now so later profile edits don't leak in
            details: Free-text annotation
            environment: Device facts to use instead of probing the host

        Returns:
            The record that was built
        """
        kind = EventKind(kind)

        with self._lock:
            record = EventRecord(
                timestamp=self._timestamp(),
                user_id=_utf8_safe(user.id) if user else "",
                user_email=user.email if user else "",
                user_name=_utf8_safe(user.name) if user else "",
                action=kind,
                details=_utf8_safe(details or ""),
                metadata=self._build_context(user, environment),
            )
            self._append(record)

        self._deliver(record)

        logger.debug(f"[EXTRACTED]: {kind.value} event logged for analytics.")
        return record

    def export_log(self) -> ExportArtifact:
        """Snapshot of the whole local log as a downloadable JSON document"""
        with self._lock:
            content = self.store.raw()
        return ExportArtifact(filename=export_filename(), content=content)

    def write_export(self, directory: Optional[str] = None) -> Path:
        artifact = self.export_log()
        target_dir = Path(directory or settings.EXPORT_DIR)
        target_dir.mkdir(parents=True, exist_ok=True)

        path = target_dir / artifact.filename
        path.write_text(artifact.content, encoding="utf-8")
        logger.info(f"💾 Exported event log to {path}")
        return path

    def read_recent_stats(self) -> List[EventRecord]:
        """Full local log, newest first"""
        with self._lock:
            records = self.store.get()
        return list(reversed(records))


# ============= SINGLETON PATTERN =============

_tracking_service_instance: Optional[TrackingService] = None


def create_tracking_service() -> TrackingService:
    storage = create_storage(settings.VIBECHECK_STORAGE_DIR)
    store = EventLogStore(storage, settings.EVENT_LOG_KEY)

    transport = None
    if settings.TRACKING_ENDPOINT_URL:
        transport = HttpEventTransport(
            settings.TRACKING_ENDPOINT_URL,
            timeout=settings.TRACKING_TIMEOUT_SECONDS
        )
    else:
        logger.info("TRACKING_ENDPOINT_URL not set, events are only stored locally")

    return TrackingService(store, transport)


def get_tracking_service() -> TrackingService:
    """Get or create the process-wide tracking service"""
    global _tracking_service_instance

    if _tracking_service_instance is None:
        _tracking_service_instance = create_tracking_service()

    return _tracking_service_instance
