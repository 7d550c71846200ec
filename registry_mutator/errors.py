class ConfigError(Exception):
    """Raised when the mutator configuration is missing or invalid."""


class DecodeError(Exception):
    """Raised when the pod embedded in an admission request cannot be decoded."""
