"""Exception hierarchy for outputcache.

All exceptions inherit from :class:`OutputCacheError`. Configuration
problems are raised while an :class:`~outputcache.interceptor.OutputCache`
is being set up so that a misconfigured endpoint fails loudly at import or
startup time instead of silently serving uncached responses.

Subclass hierarchy::

    OutputCacheError
    +-- ConfigError
    |   +-- ConfigurationMissing
    |   +-- ProfileNotFound
    |   +-- InvalidDuration
    +-- NullRequestContext
"""


class OutputCacheError(Exception):
    """Base exception for all outputcache errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(OutputCacheError):
    """Raised for configuration problems (unreadable files, invalid JSON/YAML, bad values)."""


class ConfigurationMissing(ConfigError):
    """Raised when a cache profile is requested but no profile table has been loaded."""


class ProfileNotFound(ConfigError):
    """Raised when no cache profile matches the requested name."""

    def __init__(self, name: str):
        super().__init__(
            f"No cache profile named '{name}' has been configured. "
            "Review the 'profiles' section of the outputcache settings."
        )
        self.name = name


class InvalidDuration(ConfigError):
    """Raised when a non-positive duration is assigned directly to a cache policy."""

    def __init__(self, field: str, value: int):
        super().__init__(f"{field} must be a positive number of seconds, got {value!r}")
        self.field = field
        self.value = value


class NullRequestContext(OutputCacheError):
    """Raised when a pipeline hook is invoked without a request context."""

    def __init__(self, hook: str):
        super().__init__(f"{hook} was called without a request context")
        self.hook = hook
