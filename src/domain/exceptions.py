"""
domain.exceptions - Custom exception hierarchy for the agent pipeline.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ConfigurationError(DomainError):
    """Raised at startup when required configuration is missing or invalid."""


class ToolError(DomainError):
    """Raised when a tool cannot be resolved or its arguments are invalid.

    Never escapes ToolRegistry.invoke(); it is converted to a string result
    there so the model always receives a uniform function result.
    """


class ToolNotFoundError(ToolError):
    """Raised when a tool name is not registered."""


class ToolValidationError(ToolError):
    """Raised when tool arguments do not match the tool's schema."""


class ModelError(DomainError):
    """Raised when the model backend fails for an unclassified reason."""


class ModelQuotaError(ModelError):
    """Raised when the model backend rate-limits or exhausts quota."""


class ModelRecursionLimitError(ModelError):
    """Raised when an agent's tool-call loop exceeds its step budget."""
