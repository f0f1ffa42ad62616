# vibecheck/services/event_transport.py
import requests
import logging
import queue
import threading
from typing import List, Optional, Tuple

from vibecheck.models.event import EventRecord

logger = logging.getLogger(__name__)


class EventTransport:
    """Delivery of event records to a remote collector"""

    def send(self, record: EventRecord) -> None:
        """Ordinary delivery. Must not block the caller."""
        raise NotImplementedError

    def send_durable(self, record: EventRecord) -> None:
        """Delivery that has been attempted by the time this returns, so it
        survives the process exiting right afterwards."""
        raise NotImplementedError


class HttpEventTransport(EventTransport):
    """POSTs JSON records to the collector endpoint"""

    DURABLE_TIMEOUT_SECONDS = 3.0
    MAX_WORKERS = 4
    MAX_PENDING = 1000

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })
        self._pending: "queue.Queue[Tuple[EventRecord, str]]" = queue.Queue(maxsize=self.MAX_PENDING)
        self._workers: List[threading.Thread] = []
        self._workers_lock = threading.Lock()

    def _post(self, body: str, timeout: float) -> None:
        response = self.session.post(self.endpoint_url, data=body.encode("utf-8"), timeout=timeout)
        response.raise_for_status()

    def _deliver(self, record: EventRecord, body: str) -> None:
        try:
            self._post(body, self.timeout)
            logger.debug(f"📤 Synced {record.action.value} event")
        except requests.RequestException as e:
            logger.warning(f"[EXTRACTION ERROR]: Failed to sync {record.action.value} event: {e}")
        except Exception as e:
            logger.warning(f"[EXTRACTION ERROR]: Unexpected error syncing {record.action.value} event: {e}")

    def _work(self) -> None:
        while True:
            record, body = self._pending.get()
            try:
                self._deliver(record, body)
            finally:
                self._pending.task_done()

    def _ensure_worker(self) -> None:
        with self._workers_lock:
            if len(self._workers) >= self.MAX_WORKERS:
                return
            if self._workers and self._pending.qsize() <= len(self._workers):
                return
            # Daemon threads are dropped at interpreter exit, like a fetch
            # cut off by page unload.
            worker = threading.Thread(
                target=self._work,
                name=f"event-sync-{len(self._workers) + 1}",
                daemon=True,
            )
            worker.start()
            self._workers.append(worker)

    def send(self, record: EventRecord) -> None:
        try:
            self._pending.put_nowait((record, record.to_json()))
        except queue.Full:
            logger.warning(f"[EXTRACTION ERROR]: Sync backlog full, dropping {record.action.value} event")
            return
        self._ensure_worker()

    def send_durable(self, record: EventRecord) -> None:
        self._post(record.to_json(), min(self.timeout, self.DURABLE_TIMEOUT_SECONDS))
        logger.debug(f"📤 Beaconed {record.action.value} event")
