"""
SchedulingRegistrar — idempotent topic creation and cron job registration.

The Google clients are synchronous, so every call is offloaded with
``asyncio.to_thread()``.  Clients are created on first use because building
them requires application default credentials.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Optional

from google.api_core.exceptions import AlreadyExists, GoogleAPIError
from google.cloud import pubsub_v1, scheduler_v1

from config.settings import Settings, config
from core.errors import SchedulingError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def local_part(email: str) -> str:
    """Portion of ``email`` before the first '@'."""
    if "@" not in email:
        raise ValueError(f"Not an email address: {email!r}")
    return email.split("@", 1)[0]


def resource_id(email: str, prefix: str = "gmail-notifier") -> str:
    """Stable job/topic id: ``{prefix}-{local part}`` restricted to [A-Za-z0-9_-]."""
    return f"{prefix}-{_UNSAFE_CHARS.sub('-', local_part(email))}"


class SchedulingRegistrar:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        publisher: Any = None,
        scheduler: Any = None,
    ) -> None:
        self._settings = settings or config
        self._publisher = publisher
        self._scheduler = scheduler

    # ── Lazy clients ────────────────────────────────────────────────────

    def _publisher_client(self) -> Any:
        if self._publisher is None:
            self._publisher = pubsub_v1.PublisherClient()
        return self._publisher

    def _scheduler_client(self) -> Any:
        if self._scheduler is None:
            self._scheduler = scheduler_v1.CloudSchedulerClient()
        return self._scheduler

    # ── Naming ──────────────────────────────────────────────────────────

    def topic_path(self, email: str) -> str:
        return self._settings.topic_path(resource_id(email, self._settings.resource_prefix))

    def job_name(self, email: str) -> str:
        job_id = resource_id(email, self._settings.resource_prefix)
        return f"{self._settings.scheduler_parent}/jobs/{job_id}"

    # ── Registration ────────────────────────────────────────────────────

    async def ensure_topic(self, email: str) -> str:
        """Create the user's topic unless it already exists.  Returns its path."""
        path = self.topic_path(email)
        publisher = self._publisher_client()
        try:
            await asyncio.to_thread(publisher.create_topic, name=path)
            logger.info("Created topic %s", path)
        except AlreadyExists:
            logger.debug("Topic %s already exists", path)
        except GoogleAPIError as exc:
            raise SchedulingError(f"Could not create topic {path}: {exc}") from exc
        return path

    def build_job(self, email: str, created_at: datetime) -> scheduler_v1.Job:
        return scheduler_v1.Job(
            name=self.job_name(email),
            description=f"gmail notifier for {email}",
            schedule=self._settings.cron_schedule,
            time_zone=self._settings.cron_time_zone,
            pubsub_target=scheduler_v1.PubsubTarget(
                topic_name=self.topic_path(email),
                attributes={
                    "emailAddress": email,
                    "time": str(int(created_at.timestamp() * 1000)),
                },
            ),
        )

    async def register_job(self, email: str, created_at: datetime) -> str:
        """
        Create the recurring job for ``email``; an existing job with the
        same name is updated in place.  Returns the job name.
        """
        job = self.build_job(email, created_at)
        scheduler = self._scheduler_client()
        try:
            await asyncio.to_thread(
                scheduler.create_job,
                parent=self._settings.scheduler_parent,
                job=job,
            )
            logger.info("Created job %s (%s)", job.name, job.schedule)
        except AlreadyExists:
            try:
                await asyncio.to_thread(scheduler.update_job, job=job)
            except GoogleAPIError as exc:
                raise SchedulingError(f"Could not update job {job.name}: {exc}") from exc
            logger.info("Updated job %s (%s)", job.name, job.schedule)
        except GoogleAPIError as exc:
            raise SchedulingError(f"Could not create job {job.name}: {exc}") from exc
        return job.name
