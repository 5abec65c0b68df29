"""
Configuration Defaults - Single source of truth for all default values.

FAIL-FAST DESIGN:
Account-specific defaults use INTENTIONALLY INVALID placeholder values.
This ensures runs fail loudly if required environment variables aren't set.

Organization:
    - AzureDefaults: MUST be overridden - uses invalid placeholders (fail-fast)
    - StorageDefaults: Container names and retry policy
    - PoolDefaults: One-node Ubuntu pool
    - TaskDefaults: Work item shape used by the CLI
    - SubmissionDefaults: Concurrency and timeouts
    - AppDefaults: Environment, logging

Required Environment Variables (will fail if not set):
    BATCH_ACCOUNT_NAME - Batch account name
    BATCH_ACCOUNT_URL - Batch account endpoint
    BATCH_ACCOUNT_KEY - Batch shared key
    STORAGE_ACCOUNT_NAME - Storage account holding input blobs
    OUTPUT_FILES_CONTAINER_SAS_URL - Container URL for task outputs
    FAILED_FILES_CONTAINER_SAS_URL - Container URL for failed-task logs

Usage:
    from config.defaults import SubmissionDefaults

    # In Pydantic Field definitions:
    max_concurrency: int = Field(default=SubmissionDefaults.MAX_CONCURRENCY, ...)
"""


# =============================================================================
# AZURE RESOURCE DEFAULTS (MUST override per deployment)
# =============================================================================

class AzureDefaults:
    """
    Defaults that MUST be overridden for a real deployment.

    These defaults are INTENTIONALLY INVALID to cause loud failures if not
    overridden. If you see errors referencing these placeholder values, set
    the corresponding environment variables.
    """

    BATCH_ACCOUNT_NAME = "your-batch-account"
    BATCH_ACCOUNT_URL = "https://your-batch-account.region.batch.azure.com"
    STORAGE_ACCOUNT_NAME = "yourstorageaccount"


# =============================================================================
# STORAGE DEFAULTS
# =============================================================================

class StorageDefaults:
    """Blob storage container names and client retry policy."""

    INPUT_CONTAINER = "inputfiles"

    # azure-storage-blob ExponentialRetry settings
    RETRY_TOTAL = 3
    RETRY_INITIAL_BACKOFF = 2  # seconds
    RETRY_INCREMENT_BASE = 2

    # Read SAS lifetime for input blob URLs handed to compute nodes
    INPUT_SAS_HOURS = 24


# =============================================================================
# POOL DEFAULTS
# =============================================================================

class PoolDefaults:
    """Fixed-size pool shape."""

    POOL_ID = "poolId1234"
    VM_SIZE = "Standard_A1_v2"
    TARGET_DEDICATED_NODES = 1
    IMAGE_PUBLISHER = "Canonical"
    IMAGE_OFFER = "UbuntuServer"
    IMAGE_SKU = "16.04-LTS"
    IMAGE_VERSION = "latest"
    NODE_AGENT_SKU_ID = "batch.node.ubuntu 16.04"

    # Batch service limit for pool and job ids
    MAX_ID_LENGTH = 64


# =============================================================================
# TASK DEFAULTS
# =============================================================================

class TaskDefaults:
    """Shape of the tasks built from local input files."""

    JOB_ID = "jobId1234"
    TASK_ID_PREFIX = "Task"
    INPUT_DIR = "inputFiles"
    INPUT_TARGET_NAME = "input.txt"
    COMMAND_LINE = "cp input.txt output.txt"
    OUTPUT_PATTERN = "output.txt"
    FAILURE_PATTERN = "../std*.txt"  # stdout.txt/stderr.txt live one level up
    SUCCESS_NAME_TEMPLATE = "output-{job_id}-{task_id}.txt"
    FAILURE_NAME_TEMPLATE = "failed-{job_id}-{task_id}.txt"


# =============================================================================
# SUBMISSION DEFAULTS
# =============================================================================

class SubmissionDefaults:
    """Bounded-concurrency submission settings."""

    MAX_CONCURRENCY = 3
    REQUEST_TIMEOUT_SECONDS = 30
    MAX_CONCURRENCY_LIMIT = 100


# =============================================================================
# APPLICATION DEFAULTS
# =============================================================================

class AppDefaults:
    """
    Application-wide defaults.

    Controls debug mode and logging.
    """

    DEBUG_MODE = False
    # Accepted (case-insensitive) as "on" for boolean env vars; false/0/no are "off"
    TRUE_VALUES = ("true", "1", "yes")
    ENVIRONMENT = "dev"
    LOG_LEVEL = "INFO"
