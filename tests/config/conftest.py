"""
Config test fixtures — isolated environment per test.
"""

import pytest

from config.env_validation import ENV_VAR_RULES

_EXTRA_VARS = [
    "STORAGE_ACCOUNT_KEY",
    "SUCCESS_NAME_TEMPLATE",
    "FAILURE_NAME_TEMPLATE",
]

VALID_ENV = {
    "BATCH_ACCOUNT_NAME": "mybatchaccount",
    "BATCH_ACCOUNT_URL": "https://mybatchaccount.westus2.batch.azure.com",
    "BATCH_ACCOUNT_KEY": "c2VjcmV0LWtleQ==",
    "STORAGE_ACCOUNT_NAME": "mystorageaccount",
    "OUTPUT_FILES_CONTAINER_SAS_URL": "https://mystorageaccount.blob.core.windows.net/output?sv=1&sig=abc",
    "FAILED_FILES_CONTAINER_SAS_URL": "https://mystorageaccount.blob.core.windows.net/failed?sv=1&sig=def",
}


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the config layer reads; restored after the test."""
    for name in list(ENV_VAR_RULES) + _EXTRA_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def valid_env(clean_env):
    """Clean environment with the required variables set."""
    for name, value in VALID_ENV.items():
        clean_env.setenv(name, value)
    return clean_env
