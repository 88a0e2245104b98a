"""Scheduler for the periodic Mega-Sena history refresh."""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR
from typing import Any, Dict, Optional
import logging

from config.settings import settings
from analysis.history import HistoryStore, history_store
from scraping.provider import MegaSenaDataProvider, megasena_provider

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = 'history_refresh'


class LotteryScheduler:
    """Background scheduler that keeps the history store up to date."""

    def __init__(self, provider: Optional[MegaSenaDataProvider] = None,
                 store: Optional[HistoryStore] = None):
        self.provider = provider or megasena_provider
        self.store = store or history_store
        self.scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)
        self.is_running = False
        self._setup_event_listeners()

    def _setup_event_listeners(self):
        """Setup event listeners for job monitoring."""
        def job_executed(event):
            logger.info(f"Job {event.job_id} executed successfully")

        def job_error(event):
            logger.error(f"Job {event.job_id} failed: {event.exception}")

        self.scheduler.add_listener(job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(job_error, EVENT_JOB_ERROR)

    def start(self):
        """Start the scheduler with the history refresh job."""
        if not settings.enable_scheduler:
            logger.info("Scheduler disabled in configuration")
            return

        try:
            self.scheduler.add_job(
                func=self.history_refresh_job,
                trigger=CronTrigger.from_crontab(
                    settings.history_refresh_schedule, timezone=settings.scheduler_timezone),
                id=REFRESH_JOB_ID,
                name='Daily Mega-Sena History Refresh',
                replace_existing=True,
                max_instances=1,
            )

            self.scheduler.start()
            self.is_running = True
            logger.info("Lottery scheduler started successfully")

            for job in self.scheduler.get_jobs():
                logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the scheduler."""
        if self.is_running:
            self.scheduler.shutdown(wait=True)
            self.is_running = False
            logger.info("Lottery scheduler stopped")

    def history_refresh_job(self) -> int:
        """Fetch the history and publish it; returns the number of valid draws."""
        logger.info("Starting history refresh job")
        dataset = self.provider.fetch_dataset()
        self.store.replace(dataset)
        return dataset.total_draws

    def get_job_status(self) -> Dict[str, Any]:
        """Get status of all scheduled jobs."""
        jobs = self.scheduler.get_jobs()
        return {
            'scheduler_running': self.is_running,
            'total_jobs': len(jobs),
            'jobs': [
                {
                    'id': job.id,
                    'name': job.name,
                    'next_run_time': job.next_run_time.isoformat() if getattr(job, 'next_run_time', None) else None,
                    'trigger': str(job.trigger),
                }
                for job in jobs
            ],
        }

    def run_job_now(self, job_id: str = REFRESH_JOB_ID) -> bool:
        """Run a job immediately."""
        job = self.scheduler.get_job(job_id)
        if not job:
            logger.warning(f"Job not found: {job_id}")
            return False
        job.func()
        logger.info(f"Executed job immediately: {job_id}")
        return True


# Global scheduler instance
scheduler = LotteryScheduler()
