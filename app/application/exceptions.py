class CalendarProviderError(RuntimeError):
    """Base class for failures reported by a calendar provider adapter."""
    pass


class ProviderUnavailable(CalendarProviderError):
    """Raised on transient provider failures (timeouts, network errors, 429/5xx)."""
    pass


class AuthenticationFailure(CalendarProviderError):
    """Raised when the provider rejects our credentials. Not retried."""
    pass


class InvalidRoom(CalendarProviderError):
    """Raised when the provider does not know the requested room mailbox."""
    pass


class MalformedEvent(ValueError):
    """Raised when a provider payload cannot be mapped to a CalendarEvent."""
    pass
