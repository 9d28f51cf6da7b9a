"""
Exceptions raised by the Contentful plugin.

Every error is fatal for the build: the pipeline stops at the first one and
hands it to the completion callback unchanged.
"""


class PluginError(Exception):
    """Base class for all plugin errors."""


class ConfigurationError(PluginError):
    """A required option is missing or invalid, or no local entries were found."""


class FetchError(PluginError):
    """The Contentful API could not be reached or rejected the request."""

    def __init__(self, message, status_code=None, url=None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RenderError(PluginError):
    """An entry lacks a field referenced by a builder, filter or template."""

    def __init__(self, message, entry_id=None, field=None):
        super().__init__(message)
        self.entry_id = entry_id
        self.field = field
