# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Scheduler - Run the polling passes on their own timetable, one at a time
"""
import logging
import time
from typing import Callable, Optional

import schedule

from icescraper import config
from icescraper.utils.timezone import format_stamp, get_local_time

logger = logging.getLogger(__name__)


class SyncScheduler:
    """
    Drives an IceSyncEngine with the schedule library.

    All jobs run on the calling thread, so passes never overlap.
    """

    def __init__(self, engine, scheduler: Optional[schedule.Scheduler] = None, tick_seconds: float = 1.0):
        self.engine = engine
        self.scheduler = scheduler or schedule.Scheduler()
        self.tick_seconds = tick_seconds

    def configure(self):
        """(Re)register the jobs from config"""
        self.scheduler.clear()
        self.scheduler.every().day.at(config.CALENDAR_CHECK_TIME, config.LOCAL_TIMEZONE).do(
            self._run_job, 'check-calendar', self.engine.check_for_new_days)
        self.scheduler.every(config.EVENTS_INTERVAL_HOURS).hours.do(
            self._run_job, 'check-events', self.engine.check_for_events)
        self.scheduler.every(config.TODAYS_EVENTS_INTERVAL_MIN).minutes.do(
            self._run_job, 'check-todays-events', lambda: self.engine.check_for_events(only_today=True))
        self.scheduler.every(config.STARTING_SOON_INTERVAL_MIN).minutes.do(
            self._run_job, 'check-if-events-starting-soon', self.engine.check_if_events_starting_soon)

        logger.info(
            f"Scheduler configured: calendar daily at {config.CALENDAR_CHECK_TIME}, "
            f"events every {config.EVENTS_INTERVAL_HOURS}h, "
            f"today's events every {config.TODAYS_EVENTS_INTERVAL_MIN}m"
        )

    def run_forever(self):
        """Run the loop in the calling thread until interrupted"""
        self.configure()
        logger.info(f"Scheduler started at {format_stamp(get_local_time())}")

        try:
            while True:
                self.scheduler.run_pending()
                time.sleep(self.tick_seconds)
        except KeyboardInterrupt:
            logger.info(f"Scheduler stopped at {format_stamp(get_local_time())}")

    def _run_job(self, name: str, job: Callable):
        """Run one pass; errors are logged and never stop the loop"""
        try:
            result = job()
        except Exception as e:
            logger.error(f"❌ Scheduled {name} failed: {e}")
            return

        if result is not None and result.ran:
            logger.info(f"✅ Scheduled {name} completed in {result.duration_seconds}s")
