"""
Root conftest.py — sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without Batch or Storage credentials.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'core', 'services', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables so config loading succeeds.

    Values are syntactically valid but point at nothing real.
    """
    defaults = {
        "BATCH_ACCOUNT_NAME": "testbatch",
        "BATCH_ACCOUNT_URL": "https://testbatch.westus2.batch.azure.com",
        "BATCH_ACCOUNT_KEY": "dGVzdC1rZXk=",
        "STORAGE_ACCOUNT_NAME": "teststorage",
        "OUTPUT_FILES_CONTAINER_SAS_URL": "https://teststorage.blob.core.windows.net/output?sv=x&sig=out",
        "FAILED_FILES_CONTAINER_SAS_URL": "https://teststorage.blob.core.windows.net/failed?sv=x&sig=fail",
        "ENVIRONMENT": "test",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture
def app_config():
    """AppConfig built explicitly (no environment), 3 in flight, 5s timeout."""
    from config import AppConfig, StorageConfig, SubmissionConfig, BatchAccountConfig

    return AppConfig(
        batch=BatchAccountConfig(
            account_name="testbatch",
            account_url="https://testbatch.westus2.batch.azure.com",
            account_key="dGVzdC1rZXk=",
        ),
        storage=StorageConfig(
            account_name="teststorage",
            output_container_url="https://teststorage.blob.core.windows.net/output?sv=x&sig=out",
            failed_container_url="https://teststorage.blob.core.windows.net/failed?sv=x&sig=fail",
        ),
        submission=SubmissionConfig(max_concurrency=3, request_timeout_seconds=5),
    )


@pytest.fixture
def make_config(app_config):
    """Factory fixture: app_config with submission settings overridden."""
    from config import SubmissionConfig

    def _make(**submission) -> "AppConfig":
        settings = {"max_concurrency": 3, "request_timeout_seconds": 5}
        settings.update(submission)
        return app_config.model_copy(update={"submission": SubmissionConfig(**settings)})
    return _make
