"""
AppConfig loading, validation and masking tests.
"""

import pytest

from config import AppConfig, SubmissionConfig, StorageConfig, debug_config, get_config, reset_config
from config.env_validation import ENV_VAR_RULES, validate_single_var
from exceptions import ConfigurationError


class TestFromEnvironment:

    def test_loads_required_values(self, valid_env):
        config = AppConfig.from_environment()
        assert config.batch.account_name == "mybatchaccount"
        assert config.storage.account_name == "mystorageaccount"
        assert config.storage.output_container_url.endswith("sig=abc")
        assert config.is_valid

    def test_defaults(self, valid_env):
        config = AppConfig.from_environment()
        assert config.pool_id == "poolId1234"
        assert config.job_id == "jobId1234"
        assert config.submission.max_concurrency == 3
        assert config.submission.request_timeout_seconds == 30
        assert config.storage.input_container == "inputfiles"
        assert config.storage.blob_endpoint == "https://mystorageaccount.blob.core.windows.net"

    def test_overrides(self, valid_env):
        valid_env.setenv("POOL_ID", "nightly")
        valid_env.setenv("SUBMIT_MAX_CONCURRENCY", "8")
        valid_env.setenv("STORAGE_ACCOUNT_URL", "http://127.0.0.1:10000/devstoreaccount1/")
        config = AppConfig.from_environment()
        assert config.pool_id == "nightly"
        assert config.submission.max_concurrency == 8
        assert config.storage.blob_endpoint == "http://127.0.0.1:10000/devstoreaccount1"

    @pytest.mark.parametrize("raw, expected", [
        ("true", True), ("TRUE", True), ("1", True), ("yes", True),
        ("false", False), ("0", False), ("no", False),
    ])
    def test_debug_mode_accepts_validated_booleans(self, valid_env, raw, expected):
        valid_env.setenv("DEBUG_MODE", raw)
        assert validate_single_var("DEBUG_MODE", ENV_VAR_RULES["DEBUG_MODE"]) is None
        assert AppConfig.from_environment().debug_mode is expected

    @pytest.mark.parametrize("raw", ["none", "None", "0", ""])
    def test_timeout_can_be_disabled(self, valid_env, raw):
        valid_env.setenv("SUBMIT_TIMEOUT_SECONDS", raw)
        assert AppConfig.from_environment().submission.request_timeout_seconds is None

    @pytest.mark.parametrize("name, value", [
        ("SUBMIT_MAX_CONCURRENCY", "three"),
        ("SUBMIT_MAX_CONCURRENCY", "0"),
        ("SUBMIT_TIMEOUT_SECONDS", "-1"),
        ("STORAGE_RETRY_TOTAL", "many"),
    ])
    def test_bad_values_raise_configuration_error(self, valid_env, name, value):
        valid_env.setenv(name, value)
        with pytest.raises(ConfigurationError):
            AppConfig.from_environment()


class TestRequireValid:

    def test_missing_values_listed(self, clean_env):
        config = AppConfig.from_environment()
        errors = config.validate_required()
        assert "BATCH_ACCOUNT_KEY is required" in errors
        assert "OUTPUT_FILES_CONTAINER_SAS_URL is required" in errors
        with pytest.raises(ConfigurationError, match="FAILED_FILES_CONTAINER_SAS_URL"):
            config.require_valid()

    def test_template_without_task_id_is_invalid(self, valid_env):
        valid_env.setenv("SUCCESS_NAME_TEMPLATE", "output-{job_id}.txt")
        with pytest.raises(ConfigurationError, match="SUCCESS_NAME_TEMPLATE"):
            AppConfig.from_environment().require_valid()

    def test_valid_config_returned(self, app_config):
        assert app_config.require_valid() is app_config


class TestImmutability:

    def test_frozen(self, app_config):
        with pytest.raises(Exception):
            app_config.pool_id = "other"

    def test_submission_bounds(self):
        with pytest.raises(ValueError):
            SubmissionConfig(max_concurrency=0)
        with pytest.raises(ValueError):
            SubmissionConfig(max_concurrency=1000)


class TestDebugConfig:

    def test_secrets_masked(self, app_config):
        info = debug_config(app_config)
        assert info["batch"]["account_key"] == "***MASKED***"
        assert "sig=" not in info["storage"]["output_container_url"]
        assert "sig=" not in info["storage"]["failed_container_url"]
        assert info["submission"]["max_concurrency"] == 3

    def test_storage_auth_mode(self):
        assert StorageConfig().debug_dict()["auth"] == "default_azure_credential"
        assert StorageConfig(account_key="k").debug_dict()["auth"] == "account_key"


class TestSingleton:

    def test_cached_until_reset(self, valid_env):
        reset_config()
        try:
            first = get_config()
            assert get_config() is first
            reset_config()
            assert get_config() is not first
        finally:
            reset_config()
