"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Periodic license revalidation.

A RevalidationTask re-runs one revalidation step on a fixed interval so
that expiry is enforced in long-lived processes that never restart. It is
an explicit start/stop handle around an APScheduler BackgroundScheduler;
tests drive single steps synchronously through run_once().
"""

from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tiergate.logging_config import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)


JOB_ID = "license_revalidation"


class RevalidationTask:
    """
    Cancellable recurring revalidation job.

    Stopping the task never touches license state: whatever the manager
    held when the task stopped stays in effect.
    """

    def __init__(self, step: Callable[[], bool], interval_seconds: float):
        """
        Initialize RevalidationTask.

        Args:
            step: Callable performing one revalidation; returns True if the
                license still verifies
            interval_seconds: Seconds between runs (must be positive)

        Raises:
            ValueError: If interval_seconds is not positive
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self._step = step
        self.interval_seconds = interval_seconds

        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """
        Start the background scheduler.

        The first run happens one interval after start.
        """
        if self._running:
            logger.warning("RevalidationTask is already running")
            return

        self.scheduler.add_job(
            self._revalidate_job,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Revalidate license",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        self._running = True

        logger.info(f"License revalidation scheduled every {self.interval_seconds}s")

    def stop(self, wait: bool = True) -> None:
        """
        Stop the background scheduler.

        Args:
            wait: Block until a revalidation already in progress finishes
        """
        if not self._running:
            logger.debug("RevalidationTask is not running")
            return

        self.scheduler.shutdown(wait=wait)
        self._running = False

        logger.info("License revalidation stopped")

    def run_once(self) -> bool:
        """
        Run one revalidation step synchronously, outside the schedule.

        Returns:
            Result of the step
        """
        return self._step()

    def _revalidate_job(self) -> None:
        """
        Job function called by the scheduler.

        Each pass runs under its own correlation ID. Errors are logged and
        the schedule keeps running.
        """
        set_correlation_id()
        try:
            if not self._step():
                logger.debug("Scheduled license revalidation failed")
        except Exception as e:
            logger.error(f"Scheduled license revalidation raised: {e}", exc_info=True)
        finally:
            clear_correlation_id()
