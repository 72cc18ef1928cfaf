# src/metric_widget_cli/core/exceptions.py
"""
Error types raised by the loaders, the templating engine and the AWS adapters.

ConfigError and TemplateError are fatal for a subcommand.
FetchError and WriteError are scoped to a single account.
"""


class MetricWidgetError(Exception):
    """Base class for every error this tool raises on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(MetricWidgetError):
    """Accounts file unreadable, malformed, or missing a required field."""


class TemplateError(MetricWidgetError):
    """Widget template unreadable, malformed, or a slot could not be filled."""


class FetchError(MetricWidgetError):
    """A CloudWatch call failed for one account."""


class WriteError(MetricWidgetError):
    """Writing an output file failed for one account."""
