"""One deferred APScheduler job per reminder time slot."""

import itertools
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from utils.constants import REMINDER_SLOT_JOB_PREFIX
from utils.datetime_utils import local_now, next_occurrence

logger = logging.getLogger(__name__)

# Called with ("HH:MM", arm token)
SlotCallback = Callable[[str, int], Awaitable[None]]


class TimerArmer:
    """
    Owns the armed timer of every time slot.

    Each timer is a one-shot DateTrigger job that fires at the next
    occurrence of its wall-clock time and calls the slot callback with the
    "HH:MM" key and the token it was armed with. A callback whose token is
    no longer current belongs to a cancelled timer and must be ignored.
    """

    def __init__(
        self,
        job_scheduler: BaseScheduler,
        on_due: SlotCallback,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._job_scheduler = job_scheduler
        self._on_due = on_due
        self._clock = clock or local_now
        self._jobs: Dict[str, Job] = {}
        self._tokens: Dict[str, int] = {}
        self._sequence = itertools.count(1)

    def is_armed(self, time_key: str) -> bool:
        return time_key in self._jobs

    def armed_times(self) -> List[str]:
        return list(self._jobs)

    def arm(self, time_key: str) -> bool:
        """
        Arm the timer for time_key unless it already has one.

        Returns:
            True if a new job was added
        """
        if time_key in self._jobs:
            return False

        now = self._clock()
        run_at = next_occurrence(time_key, now)
        token = next(self._sequence)
        job = self._job_scheduler.add_job(
            self._on_due,
            trigger=DateTrigger(run_date=run_at),
            args=[time_key, token],
            id=f"{REMINDER_SLOT_JOB_PREFIX}{time_key}",
            name=f"Reminders at {time_key}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        self._jobs[time_key] = job
        self._tokens[time_key] = token

        delay_minutes = round((run_at - now).total_seconds() / 60)
        logger.info(f"Timer armed for {time_key} (in {delay_minutes} min)")
        return True

    def cancel(self, time_key: str) -> bool:
        """Remove the job for time_key. False when none was armed."""
        job = self._jobs.pop(time_key, None)
        self._tokens.pop(time_key, None)
        if job is None:
            return False
        try:
            job.remove()
        except JobLookupError:
            # Already submitted or removed by the job scheduler
            pass
        logger.debug(f"Timer cancelled for {time_key}")
        return True

    def claim(self, time_key: str, token: int) -> bool:
        """
        Forget the timer that has just fired.

        Returns:
            False if token is not the current timer's, leaving the record alone
        """
        if self._tokens.get(time_key) != token:
            return False
        del self._tokens[time_key]
        self._jobs.pop(time_key, None)
        return True

    def cancel_all(self) -> None:
        for time_key in list(self._jobs):
            self.cancel(time_key)
