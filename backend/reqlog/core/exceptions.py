"""Exceptions raised by reqlog."""


class ConfigurationError(ValueError):
    """Raised at registration time when request logging options are unusable."""
