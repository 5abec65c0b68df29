# ============================================================================
# ENVIRONMENT VARIABLE VALIDATION
# ============================================================================
# STATUS: Configuration - Startup validation with regex patterns
# PURPOSE: Validate env vars before any remote call so bad config fails fast
# ============================================================================
"""
Environment Variable Validation Module.

Validates environment variables at startup using regex patterns so that a
mistyped account URL or a non-numeric concurrency bound is reported before
the orchestrator uploads anything or touches the Batch account.

Standard library only; imported by the CLI before the Azure SDKs load.

Usage:
    from config.env_validation import validate_environment

    issues = validate_environment()
    for issue in issues:
        print(f"{issue.var_name}: {issue.message}")
        print(f"  Expected: {issue.expected_pattern}")
        print(f"  Fix: {issue.fix_suggestion}")

Exports:
    ENV_VAR_RULES: Dict of all validation rules
    EnvVarIssue: Dataclass for validation failures and warnings
    validate_environment: Main validation function
    validate_single_var: Validate one variable
"""

import os
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Any


# ============================================================================
# VALIDATION ISSUE
# ============================================================================

@dataclass
class EnvVarIssue:
    """Result of a failed environment variable validation."""
    var_name: str
    message: str
    current_value: Optional[str]
    expected_pattern: str
    fix_suggestion: str
    severity: str = "error"  # error, warning

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "var_name": self.var_name,
            "message": self.message,
            "current_value": self._mask_sensitive(self.current_value),
            "expected_pattern": self.expected_pattern,
            "fix_suggestion": self.fix_suggestion,
            "severity": self.severity,
        }

    def _mask_sensitive(self, value: Optional[str]) -> Optional[str]:
        """Mask keys and SAS URLs."""
        if value is None:
            return None
        sensitive_keywords = ["key", "sas", "secret", "token"]
        var_lower = self.var_name.lower()
        if any(kw in var_lower for kw in sensitive_keywords):
            return "***MASKED***"
        if len(value) > 30:
            return f"{value[:20]}...({len(value)} chars)"
        return value


# ============================================================================
# VALIDATION RULE DEFINITION
# ============================================================================

@dataclass
class EnvVarRule:
    """
    Validation rule for an environment variable.

    Attributes:
        pattern: Compiled regex pattern for validation
        pattern_description: Human-readable description of expected format
        required: Whether this variable must be set
        fix_suggestion: How to fix if validation fails
        example: Example valid value
        allow_empty: Allow empty string (default False)
        default_value: Default value used if not set (for warning messages)
        warn_on_default: Emit warning when using default value
    """
    pattern: Pattern
    pattern_description: str
    required: bool
    fix_suggestion: str
    example: str
    allow_empty: bool = False
    default_value: Optional[str] = None
    warn_on_default: bool = True


# ============================================================================
# COMMON PATTERNS
# ============================================================================

_AZURE_STORAGE_ACCOUNT = re.compile(r"^[a-z0-9]{3,24}$")
_BATCH_ACCOUNT_NAME = re.compile(r"^[a-z0-9]{3,24}$")
_BATCH_ACCOUNT_URL = re.compile(r"^https://[a-z0-9][a-z0-9-]*\.[a-z0-9-]+\.batch\.azure\.com/?$", re.IGNORECASE)
_BLOB_ENDPOINT = re.compile(r"^https?://[a-z0-9][a-z0-9.:-]+(/[a-z0-9-]+)?/?$", re.IGNORECASE)
_CONTAINER_NAME = re.compile(r"^[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]$")
_HTTPS_URL = re.compile(r"^https://[a-z0-9][a-z0-9.-]+\.[a-z]{2,}.*$", re.IGNORECASE)
_RESOURCE_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_POSITIVE_INT = re.compile(r"^[1-9][0-9]*$")
_NON_NEGATIVE_INT = re.compile(r"^[0-9]+$")
_TIMEOUT = re.compile(r"^([0-9]+(\.[0-9]+)?|none)$", re.IGNORECASE)
_BOOLEAN = re.compile(r"^(true|false|1|0|yes|no)$", re.IGNORECASE)
_LOG_LEVEL = re.compile(r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", re.IGNORECASE)
_ENVIRONMENT = re.compile(r"^(dev|development|test|staging|prod|production)$", re.IGNORECASE)


# ============================================================================
# VALIDATION RULES
# ============================================================================

ENV_VAR_RULES: Dict[str, EnvVarRule] = {
    # Batch account
    "BATCH_ACCOUNT_NAME": EnvVarRule(
        pattern=_BATCH_ACCOUNT_NAME,
        pattern_description="Lowercase alphanumeric, 3-24 characters",
        required=True,
        fix_suggestion="Use the Batch account name shown in the Azure portal",
        example="mybatchaccount",
    ),
    "BATCH_ACCOUNT_URL": EnvVarRule(
        pattern=_BATCH_ACCOUNT_URL,
        pattern_description="https://<account>.<region>.batch.azure.com",
        required=True,
        fix_suggestion="Copy the account endpoint from the Batch account Keys blade",
        example="https://mybatchaccount.westus2.batch.azure.com",
    ),
    "BATCH_ACCOUNT_KEY": EnvVarRule(
        pattern=re.compile(r"^\S+$"),
        pattern_description="Non-empty shared key",
        required=True,
        fix_suggestion="Copy the primary access key from the Batch account Keys blade",
        example="<base64 key>",
    ),

    # Storage account
    "STORAGE_ACCOUNT_NAME": EnvVarRule(
        pattern=_AZURE_STORAGE_ACCOUNT,
        pattern_description="Lowercase alphanumeric, 3-24 characters",
        required=True,
        fix_suggestion="Storage account names must be lowercase letters and numbers only",
        example="mystorageaccount",
    ),
    "STORAGE_ACCOUNT_URL": EnvVarRule(
        pattern=_BLOB_ENDPOINT,
        pattern_description="Blob endpoint URL (https, or http for a local emulator)",
        required=False,
        fix_suggestion="Leave unset to derive https://<account>.blob.core.windows.net",
        example="https://mystorageaccount.blob.core.windows.net",
        warn_on_default=False,
    ),
    "INPUT_CONTAINER": EnvVarRule(
        pattern=_CONTAINER_NAME,
        pattern_description="Container name: lowercase, digits, single hyphens, 3-63 characters",
        required=False,
        fix_suggestion="Use a valid blob container name",
        example="inputfiles",
        default_value="inputfiles",
    ),
    "OUTPUT_FILES_CONTAINER_SAS_URL": EnvVarRule(
        pattern=_HTTPS_URL,
        pattern_description="https container URL with a write SAS token",
        required=True,
        fix_suggestion="Generate a container SAS with write permission for successful outputs",
        example="https://mystorageaccount.blob.core.windows.net/output?sv=...&sig=...",
    ),
    "FAILED_FILES_CONTAINER_SAS_URL": EnvVarRule(
        pattern=_HTTPS_URL,
        pattern_description="https container URL with a write SAS token",
        required=True,
        fix_suggestion="Generate a container SAS with write permission for failure logs",
        example="https://mystorageaccount.blob.core.windows.net/failed?sv=...&sig=...",
    ),
    "STORAGE_RETRY_TOTAL": EnvVarRule(
        pattern=_NON_NEGATIVE_INT,
        pattern_description="Non-negative integer",
        required=False,
        fix_suggestion="Number of retries for blob operations",
        example="3",
        default_value="3",
    ),

    # Submission
    "SUBMIT_MAX_CONCURRENCY": EnvVarRule(
        pattern=_POSITIVE_INT,
        pattern_description="Positive integer",
        required=False,
        fix_suggestion="Upper bound on simultaneous task submission requests",
        example="3",
        default_value="3",
    ),
    "SUBMIT_TIMEOUT_SECONDS": EnvVarRule(
        pattern=_TIMEOUT,
        pattern_description="Seconds (number) or 'none'",
        required=False,
        fix_suggestion="Per-request timeout; 0 or none disables it",
        example="30",
        default_value="30",
    ),

    # Resource identifiers
    "POOL_ID": EnvVarRule(
        pattern=_RESOURCE_ID,
        pattern_description="Letters, digits, hyphens, underscores (max 64)",
        required=False,
        fix_suggestion="Pool ids are case-insensitive and at most 64 characters",
        example="poolId1234",
        default_value="poolId1234",
    ),
    "JOB_ID": EnvVarRule(
        pattern=_RESOURCE_ID,
        pattern_description="Letters, digits, hyphens, underscores (max 64)",
        required=False,
        fix_suggestion="Job ids are case-insensitive and at most 64 characters",
        example="jobId1234",
        default_value="jobId1234",
    ),

    # Application
    "LOG_LEVEL": EnvVarRule(
        pattern=_LOG_LEVEL,
        pattern_description="DEBUG, INFO, WARNING, ERROR or CRITICAL",
        required=False,
        fix_suggestion="Use a standard logging level name",
        example="INFO",
        default_value="INFO",
        warn_on_default=False,
    ),
    "DEBUG_MODE": EnvVarRule(
        pattern=_BOOLEAN,
        pattern_description="true/false (also 1/0, yes/no)",
        required=False,
        fix_suggestion="Enables verbose DEBUG logging",
        example="false",
        default_value="false",
        warn_on_default=False,
    ),
    "ENVIRONMENT": EnvVarRule(
        pattern=_ENVIRONMENT,
        pattern_description="dev, test, staging or prod",
        required=False,
        fix_suggestion="Deployment environment label used in log records",
        example="dev",
        default_value="dev",
        warn_on_default=False,
    ),
}


# ============================================================================
# VALIDATION FUNCTIONS
# ============================================================================

def validate_single_var(
    var_name: str,
    rule: EnvVarRule,
    include_warnings: bool = True
) -> Optional[EnvVarIssue]:
    """
    Validate a single environment variable against its rule.

    Args:
        var_name: Environment variable name
        rule: Validation rule to apply
        include_warnings: Whether to return warnings for vars using defaults

    Returns:
        EnvVarIssue if validation fails or warning if using default, None if passes
    """
    value = os.environ.get(var_name)

    if rule.required and (value is None or (not rule.allow_empty and value == "")):
        return EnvVarIssue(
            var_name=var_name,
            message="Required environment variable not set",
            current_value=value,
            expected_pattern=rule.pattern_description,
            fix_suggestion=f"{rule.fix_suggestion}. Example: {rule.example}",
            severity="error",
        )

    if value is None or value == "":
        if include_warnings and not rule.required and rule.warn_on_default and rule.default_value is not None:
            return EnvVarIssue(
                var_name=var_name,
                message="Not set, using default value",
                current_value=None,
                expected_pattern=f"Default: {rule.default_value}",
                fix_suggestion=f"Set explicitly or accept default. {rule.fix_suggestion}",
                severity="warning",
            )
        return None

    if not rule.pattern.match(value):
        return EnvVarIssue(
            var_name=var_name,
            message="Invalid format",
            current_value=value,
            expected_pattern=rule.pattern_description,
            fix_suggestion=f"{rule.fix_suggestion}. Example: {rule.example}",
            severity="error",
        )

    return None


def validate_environment(
    rules: Optional[Dict[str, EnvVarRule]] = None,
    include_warnings: bool = True
) -> List[EnvVarIssue]:
    """
    Validate all environment variables against their rules.

    Args:
        rules: Optional custom rules dict (defaults to ENV_VAR_RULES)
        include_warnings: Whether to include warnings for vars using defaults

    Returns:
        List of EnvVarIssue objects (errors and optionally warnings)
    """
    if rules is None:
        rules = ENV_VAR_RULES

    results = []
    for var_name, rule in rules.items():
        result = validate_single_var(var_name, rule, include_warnings=include_warnings)
        if result:
            results.append(result)

    return results


def log_validation_results(logger, rules: Optional[Dict[str, EnvVarRule]] = None) -> bool:
    """
    Log validation results at appropriate levels.

    Errors at ERROR, defaults at WARNING. Returns True if there were no errors.
    """
    all_results = validate_environment(rules, include_warnings=True)

    errors = [r for r in all_results if r.severity == "error"]
    warnings = [r for r in all_results if r.severity == "warning"]

    for error in errors:
        logger.error(
            f"ENV VAR ERROR: {error.var_name} - {error.message}",
            extra={"custom_dimensions": error.to_dict()},
        )

    if warnings:
        logger.warning(f"ENV VARS: {len(warnings)} optional variables using defaults")
        for warning in warnings:
            logger.warning(f"  {warning.var_name} -> {warning.expected_pattern.replace('Default: ', '')}")

    if errors:
        logger.error(f"Environment validation failed: {len(errors)} errors")
        return False
    logger.info("Environment validation passed")
    return True


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ENV_VAR_RULES",
    "EnvVarRule",
    "EnvVarIssue",
    "validate_environment",
    "validate_single_var",
    "log_validation_results",
]
