"""
Tests for topic/job registration with mocked Google clients.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import AlreadyExists, PermissionDenied

from config.settings import Settings
from core.errors import SchedulingError
from scheduling.registrar import SchedulingRegistrar, local_part, resource_id

CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _registrar(publisher=None, scheduler=None) -> SchedulingRegistrar:
    settings = Settings(gcloud_project="proj", gcf_region="europe-west1", _env_file=None)
    return SchedulingRegistrar(
        settings,
        publisher=publisher or MagicMock(),
        scheduler=scheduler or MagicMock(),
    )


class TestResourceNames:
    def test_local_part(self):
        assert local_part("jane.doe@example.com") == "jane.doe"

    def test_local_part_stops_at_first_at(self):
        assert local_part("a@b@example.com") == "a"
        assert resource_id("a@b@example.com") == "gmail-notifier-a"

    def test_local_part_requires_at(self):
        with pytest.raises(ValueError):
            local_part("jane")

    def test_resource_id_is_sanitised(self):
        assert resource_id("jane.doe+news@example.com") == "gmail-notifier-jane-doe-news"
        assert resource_id("bob_1@example.com", prefix="x") == "x-bob_1"

    def test_paths(self):
        registrar = _registrar()
        assert registrar.topic_path("jane@example.com") == "projects/proj/topics/gmail-notifier-jane"
        assert (
            registrar.job_name("jane@example.com")
            == "projects/proj/locations/europe-west1/jobs/gmail-notifier-jane"
        )


class TestEnsureTopic:
    @pytest.mark.asyncio
    async def test_creates_topic(self):
        publisher = MagicMock()
        path = await _registrar(publisher=publisher).ensure_topic("jane@example.com")

        publisher.create_topic.assert_called_once_with(name=path)

    @pytest.mark.asyncio
    async def test_existing_topic_is_fine(self):
        publisher = MagicMock()
        publisher.create_topic.side_effect = AlreadyExists("topic exists")

        path = await _registrar(publisher=publisher).ensure_topic("jane@example.com")
        assert path.endswith("gmail-notifier-jane")

    @pytest.mark.asyncio
    async def test_other_errors_are_wrapped(self):
        publisher = MagicMock()
        publisher.create_topic.side_effect = PermissionDenied("nope")

        with pytest.raises(SchedulingError):
            await _registrar(publisher=publisher).ensure_topic("jane@example.com")


class TestRegisterJob:
    @pytest.mark.asyncio
    async def test_creates_job(self):
        scheduler = MagicMock()
        name = await _registrar(scheduler=scheduler).register_job("jane@example.com", CREATED)

        kwargs = scheduler.create_job.call_args.kwargs
        job = kwargs["job"]
        assert kwargs["parent"] == "projects/proj/locations/europe-west1"
        assert job.name == name
        assert job.schedule == "*/7 * * * *"
        assert job.description == "gmail notifier for jane@example.com"
        assert job.pubsub_target.topic_name == "projects/proj/topics/gmail-notifier-jane"
        assert job.pubsub_target.attributes["emailAddress"] == "jane@example.com"
        assert job.pubsub_target.attributes["time"] == str(int(CREATED.timestamp() * 1000))
        scheduler.update_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_existing_job_is_updated(self):
        scheduler = MagicMock()
        scheduler.create_job.side_effect = AlreadyExists("job exists")

        await _registrar(scheduler=scheduler).register_job("jane@example.com", CREATED)
        scheduler.update_job.assert_called_once()

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self):
        scheduler = MagicMock()
        scheduler.create_job.side_effect = PermissionDenied("nope")

        with pytest.raises(SchedulingError):
            await _registrar(scheduler=scheduler).register_job("jane@example.com", CREATED)
