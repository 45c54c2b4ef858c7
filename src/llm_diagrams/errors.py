"""llm-diagrams exception hierarchy.

All service exceptions inherit from DiagramError so the web layer can map
the whole family to HTTP responses with a single catch clause.
"""


class DiagramError(Exception):
    """Base exception for all llm-diagrams errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class InvalidInputError(DiagramError):
    """Empty or malformed caller input."""


class ConfigError(DiagramError):
    """Invalid or missing configuration."""


class ProviderError(DiagramError):
    """Error communicating with the model service."""


class RequestEncodingError(ProviderError):
    """Chat request could not be serialized."""


class TransportError(ProviderError):
    """Network, TLS or connection failure talking to the model service."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class ProviderTimeoutError(TransportError):
    """Model service call exceeded its deadline."""


class APIError(ProviderError):
    """Model service answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(
            f"API request failed with status code {status_code}: {body}",
            retryable=status_code == 429 or status_code >= 500,
        )
        self.status_code = status_code
        self.body = body


class MalformedResponseError(ProviderError):
    """Response body unreadable or not shaped like a chat response."""


class EmptyResponseError(DiagramError):
    """Model answered with no content blocks."""


class GenerationError(DiagramError):
    """Markup generation failed while calling the model service."""


class FilesystemError(DiagramError):
    """Scratch file create, write or delete failure."""


class ExternalToolError(DiagramError):
    """External renderer could not be launched or exited unsuccessfully."""

    def __init__(
        self,
        message: str = "",
        *,
        returncode: int | None = None,
        stderr: str = "",
        launch_failed: bool = False,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
        self.launch_failed = launch_failed


class RenderTimeoutError(ExternalToolError):
    """External renderer exceeded its deadline."""
