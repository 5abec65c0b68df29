"""
Unit test fixtures — routers and builders wired to fixed container URLs.
"""

import pytest

from tests.factories.model_factories import SUCCESS_URL, FAILURE_URL


@pytest.fixture
def router():
    from services.output_router import OutputRouter
    return OutputRouter(SUCCESS_URL, FAILURE_URL)


@pytest.fixture
def builder(router):
    from services.task_builder import TaskDescriptorBuilder
    return TaskDescriptorBuilder(router, lambda ref: f"https://fake.blob.core.windows.net/{ref}")
