# pricewatch/errors.py

"""Exception taxonomy shared by the parsing, network and storage layers."""


class PriceWatchError(Exception):
    """Base class for every error raised by pricewatch."""


class ParseError(PriceWatchError):
    """Text carried no usable price. Absorbed by ``parse_price``."""


class FetchError(PriceWatchError):
    """Network failure, timeout, or retryable status after all attempts."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class HttpStatusError(FetchError):
    """Non-retryable HTTP status returned by the server."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"HTTP {status_code}")
        self.status_code = status_code


class CaptchaDetectedError(PriceWatchError):
    """Response body is a bot challenge instead of the product page."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Bot challenge detected ({reason}) at {url}")
        self.url = url
        self.reason = reason


class PermissionDeniedError(PriceWatchError):
    """Fetching from the domain has not been granted."""

    def __init__(self, domain: str) -> None:
        super().__init__(f"No permission to fetch from {domain}")
        self.domain = domain


class ItemNotFoundError(PriceWatchError):
    """No tracked item exists with the given id."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Tracked item {item_id!r} not found")
        self.item_id = item_id


class ValidationError(PriceWatchError):
    """A settings value is outside its accepted range."""


class TrackingLimitError(PriceWatchError):
    """Adding another item would exceed the configured maximum."""
