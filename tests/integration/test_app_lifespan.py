"""Integration tests for the database-backed application lifespan."""

import pytest

from payguard.api.app import create_app
from payguard.config.settings import RetentionSettings, Settings


def lifespan_settings(test_settings: Settings, run_scheduler: bool) -> Settings:
    return test_settings.model_copy(
        update={"retention": RetentionSettings(run_scheduler=run_scheduler)}
    )


@pytest.mark.asyncio
class TestLifespan:
    """Tests for engine startup and shutdown."""

    async def test_scheduler_runs_while_app_is_up(self, test_settings):
        app = create_app(settings=lifespan_settings(test_settings, run_scheduler=True))

        async with app.router.lifespan_context(app):
            retention = app.state.compliance_engine.retention
            assert retention._running is True
            assert retention._check_task is not None

        assert retention._running is False
        assert retention._check_task is None

    async def test_scheduler_can_be_disabled(self, test_settings):
        app = create_app(settings=lifespan_settings(test_settings, run_scheduler=False))

        async with app.router.lifespan_context(app):
            assert app.state.compliance_engine.retention._check_task is None
