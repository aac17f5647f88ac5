"""Exception hierarchy for imagemap-publisher."""


class ToolboxError(Exception):
    """Base exception for all imagemap-publisher errors."""


class ToolError(ToolboxError):
    """Raised when a tool encounters an error during execution."""


class ValidationError(ToolboxError):
    """Raised when parameter validation fails."""


class PipelineError(ToolboxError):
    """Raised when a pipeline encounters an error."""


class SourceNotFoundError(ValidationError):
    """Raised when the source image does not exist on disk."""


class ConversionError(ToolError):
    """Raised when a variant cannot be decoded, resized or written."""


class UploadError(ToolError):
    """Raised when the object store rejects an upload."""
