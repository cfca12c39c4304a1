"""Error taxonomy shared by clients, pipeline and API."""


class ChatDocsError(Exception):
    """Base class for application errors."""


class ProviderError(ChatDocsError):
    """The messaging provider was unreachable or rejected the call."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OcrError(ChatDocsError):
    """The document-processing service failed."""


class NotFoundError(ChatDocsError):
    """A referenced chat, message, organization or document is absent."""


class ValidationError(ChatDocsError):
    """Required input is missing or malformed."""
