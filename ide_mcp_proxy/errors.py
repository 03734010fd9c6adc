"""Exceptions raised by the IDE MCP proxy."""


class ProxyError(Exception):
    """Base class for proxy errors."""


class ConfigError(ProxyError):
    """Invalid configuration value."""


class EndpointNotFound(ProxyError):
    """No candidate IDE endpoint answered the tool-listing probe."""


class ForwardingFailure(ProxyError):
    """A tool call could not be delivered to the IDE or its reply was unusable."""


class ToolListUnavailable(ProxyError):
    """The IDE tool list could not be fetched."""


class ResourceNotFound(ProxyError):
    """Unknown static resource URI."""
