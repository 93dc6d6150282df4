"""Dispatcher configuration.

DispatcherConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable, validated once when it is built.
"""

from dataclasses import dataclass

from turnstile.errors import ConfigurationError

_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


@dataclass(frozen=True, slots=True)
class DispatcherConfig:
    """Transition dispatcher configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = DispatcherConfig(guard_timeout=2.5, max_redirect_hops=2)
    """

    # Seconds a single guard may take to decide (None = unbounded)
    guard_timeout: float | None = 10.0

    # Redirects followed within one navigation before it is cancelled
    max_redirect_hops: int = 1

    # Level applied to the "turnstile" logger tree (None = leave untouched)
    log_level: str | None = None

    def __post_init__(self) -> None:
        if self.guard_timeout is not None and self.guard_timeout <= 0:
            msg = f"guard_timeout must be positive or None, got {self.guard_timeout!r}."
            raise ConfigurationError(msg)
        if self.max_redirect_hops < 0:
            msg = f"max_redirect_hops must be >= 0, got {self.max_redirect_hops!r}."
            raise ConfigurationError(msg)
        if self.log_level is not None and self.log_level.lower() not in _LOG_LEVELS:
            allowed = ", ".join(sorted(_LOG_LEVELS))
            msg = f"Unknown log_level {self.log_level!r}. Expected one of: {allowed}."
            raise ConfigurationError(msg)
