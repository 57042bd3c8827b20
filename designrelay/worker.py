# designrelay/worker.py
import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

from .automation import run_generation
from .browser import SessionManager
from .config import Settings
from .errors import DeliveryError, RelayError
from .images import extract_image_urls
from .logger import JobLogger
from .models import CompletedPayload, FailedPayload, Job, JobStatus, JobSummary
from .utils import enrich_prompt
from .webhook import WebhookNotifier

log = logging.getLogger(__name__)

Pipeline = Callable[[Job, JobLogger], Awaitable[str]]


class JobOrchestrator:
    """
    Accepts generation jobs and runs each one as its own task on the event loop.

    A job lives in `self.jobs` only until its single webhook attempt finishes.
    """

    def __init__(self, settings: Settings, sessions: SessionManager,
                 pipeline: Optional[Pipeline] = None, notifier=None):
        self.settings = settings
        self.sessions = sessions
        self._pipeline = pipeline or self._generate
        self._notifier = notifier
        self.jobs: Dict[str, Job] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def submit(self, prompt: str, source_url: str = None) -> str:
        """Schedule a job and return its id without waiting for the automation."""
        webhook_url = self.settings.require_webhook()
        notifier = self._notifier or WebhookNotifier(webhook_url, self.settings.http_timeout)

        job = Job(id=str(uuid4()), prompt=prompt, source_url=source_url)
        self.jobs[job.id] = job
        task = asyncio.get_running_loop().create_task(self._run(job, notifier))
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, job_id=job.id: self._tasks.pop(job_id, None))
        log.info("[%s] Handed off job to background processor.", job.id)
        return job.id

    def list_jobs(self) -> List[JobSummary]:
        return [JobSummary(job_id=j.id, status=j.status, source_url=j.source_url) for j in self.jobs.values()]

    async def _generate(self, job: Job, logger: JobLogger) -> str:
        self.settings.require_credentials()
        prompt = job.prompt
        if self.settings.enrich_prompt_with_images and job.source_url:
            prompt = await self._enrich(job, logger)
        return await run_generation(job.id, prompt, self.settings, self.sessions, logger)

    async def _enrich(self, job: Job, logger: JobLogger) -> str:
        try:
            urls = await extract_image_urls(job.source_url, self.sessions, self.settings)
        except RelayError as e:
            logger.log("enrich_prompt", False, f"Image extraction failed, using plain prompt: {e}")
            return job.prompt
        logger.log("enrich_prompt", True, f"Found {len(urls)} images on {job.source_url}")
        return enrich_prompt(job.prompt, urls, self.settings.max_prompt_images)

    async def _run(self, job: Job, notifier):
        try:
            logger = JobLogger(job.id, self.settings.log_dir)
            job.status = JobStatus.RUNNING
            logger.log("job_start", True, f"Starting job for prompt: {job.prompt!r}")
            try:
                result_url = await self._pipeline(job, logger)
            except Exception as e:
                job.status = JobStatus.FAILED
                job.error_detail = str(e) or type(e).__name__
                logger.log("job_failed", False, job.error_detail, extra={"error_type": type(e).__name__})
                payload = FailedPayload(job_id=job.id, error_message=job.error_detail)
            else:
                job.status = JobStatus.COMPLETED
                job.result_url = result_url
                payload = CompletedPayload(job_id=job.id, generated_url=result_url)

            try:
                await notifier.notify(payload)
            except DeliveryError as e:
                if job.status is JobStatus.FAILED:
                    logger.log("notify_failed", False, f"FATAL: could not report the failure: {e}",
                               extra={"original_error": job.error_detail})
                else:
                    logger.log("notify_failed", False, f"FATAL: could not report the result: {e}",
                               extra={"result_url": job.result_url})
            else:
                logger.log("notified", True, f"Webhook notified ({payload.status})")
        finally:
            self.jobs.pop(job.id, None)

    async def shutdown(self):
        """Cancel in-flight jobs and release every live browser session."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.sessions.release_all()
