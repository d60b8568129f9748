"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration, including credentials."""

    error_code = "CONFIG_ERROR"


class InvalidCredentialError(ConfigError):
    """Raised when a remote provider rejects the configured credential."""

    error_code = "INVALID_CREDENTIAL"


class InputError(PipelineError):
    """Raised when the input source is missing or cannot be parsed."""

    error_code = "INPUT_ERROR"


class StageError(PipelineError):
    """Raised for per-record failures; the run continues with the next record."""

    error_code = "STAGE_ERROR"
