class MigrationError(Exception):
    """Base class for every failure the migration knows how to report."""


class ValidationError(MigrationError):
    """Missing configuration or unusable input, raised before any network activity."""


class TransientNetworkError(MigrationError):
    def __init__(self, url: str, attempt: int, cause: BaseException) -> None:
        self.url = url
        self.attempt = attempt
        self.cause = cause
        super().__init__(f"Transient failure for {url} (attempt {attempt}): {type(cause).__name__}: {cause}")


class FetchFailure(MigrationError):
    def __init__(self, url: str, attempts: int, cause: BaseException | None = None) -> None:
        self.url = url
        self.attempts = attempts
        self.cause = cause
        detail = f"\nCause: {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(f"Fetch failed for {url} after {attempts} attempt(s){detail}")


class HttpStatusError(MigrationError):
    def __init__(self, url: str, status: int, body: str = "") -> None:
        self.url = url
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status} for {url}\n{body}".rstrip())


class AssetFetchError(MigrationError):
    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not inline {url}: {reason}")
