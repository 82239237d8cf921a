"""Custom exceptions for the touchdown pipeline.

Provider failures are the only errors the pipeline raises on purpose. Payload
shape problems are never exceptions: they are normalized to empty/zero values
at ingestion (see data/processing/payloads.py).

Usage Examples:
- raise ProviderRequestError("/games/abc/statistics.json", 503)
- raise RateLimitExceededError("/games/abc/pbp.json", 429)
"""


class TouchdownError(Exception):
    """Base exception for touchdown pipeline errors."""


class MissingApiKeyError(TouchdownError):
    """Raised when a provider request is attempted without an API key.

    Set SPORTRADAR_API_KEY in the environment or the .env file.
    """


class ProviderRequestError(TouchdownError):
    """Raised when a provider request fails (non-2xx status or transport error).

    The week sync treats this as "this game contributed nothing" and
    continues with the remaining games.
    """

    def __init__(self, endpoint: str, status_code: int | None = None, message: str | None = None):
        self.endpoint = endpoint
        self.status_code = status_code
        detail = message or (f"status {status_code}" if status_code else "request failed")
        super().__init__(f"SportsRadar request {endpoint} failed: {detail}")


class RateLimitExceededError(ProviderRequestError):
    """Raised when HTTP 429 persists after every retry has been used."""
