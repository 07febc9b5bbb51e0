"""
Repeating timers - delta order sync and daily summary recompute
"""
import logging
import threading
from typing import Callable, Optional

import config
from aggregates import recompute_daily_summary

logger = logging.getLogger(__name__)


class RepeatingJob:
    """Runs `job` every `interval` seconds on its own thread until stopped"""

    def __init__(self, name: str, interval: float, job: Callable[[], object], run_immediately: bool = False):
        self.name = name
        self.interval = interval
        self.job = job
        self.run_immediately = run_immediately
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def _run(self):
        logger.info(f"Starting job '{self.name}' (every {self.interval}s)")
        if self.run_immediately:
            self._run_once()

        # wait() returns True once stop is requested
        while not self.stop_event.wait(self.interval):
            self._run_once()

        logger.info(f"Job '{self.name}' stopped")

    def _run_once(self):
        try:
            self.job()
        except Exception:
            logger.exception(f"Job '{self.name}' failed, will retry next tick")

    def stop(self, timeout: Optional[float] = None):
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


class SyncScheduler:
    """Owns the two independent timers of the sync process"""

    def __init__(
        self,
        order_service,
        snapshot,
        sync_interval: float = config.ORDER_SYNC_INTERVAL,
        summary_interval: float = config.SUMMARY_INTERVAL
    ):
        self.order_service = order_service
        self.snapshot = snapshot
        self.sync_job = RepeatingJob('delta-sync', sync_interval, self.order_service.delta_sync)
        self.summary_job = RepeatingJob(
            'daily-summary', summary_interval, self._recompute_summary, run_immediately=True
        )

    def _recompute_summary(self):
        return recompute_daily_summary(self.snapshot)

    @property
    def is_running(self) -> bool:
        return self.sync_job.is_running or self.summary_job.is_running

    def start(self):
        self.sync_job.start()
        self.summary_job.start()

    def stop(self, timeout: Optional[float] = None):
        logger.info("Stopping scheduler...")
        self.sync_job.stop(timeout)
        self.summary_job.stop(timeout)
