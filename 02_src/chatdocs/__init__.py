"""Chat document desk: WhatsApp ingestion, OCR pipeline and viewer API."""

from .app import Application, IApplication
from .config import Settings
from .errors import (
    ChatDocsError,
    NotFoundError,
    OcrError,
    ProviderError,
    ValidationError,
)
from .models import (
    Chat,
    Document,
    EventType,
    FileType,
    MediaType,
    Message,
    Notification,
    OcrResult,
    Organization,
    Reaction,
)
from .notifier import INotifier, Notifier
from .ocr import DocumentAiClient, IOcrClient
from .pipeline import (
    ChatResolver,
    DocumentProcessor,
    IngestionPipeline,
    IngestOutcome,
    ProcessingResult,
    ProcessingStatus,
    TaskRunner,
)
from .providers import IProviderClient, WhapiClient
from .storage import IStorage, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Errors
    "ChatDocsError",
    "NotFoundError",
    "OcrError",
    "ProviderError",
    "ValidationError",
    # Models
    "Chat",
    "Message",
    "Reaction",
    "MediaType",
    "Document",
    "FileType",
    "OcrResult",
    "Organization",
    "EventType",
    "Notification",
    # Components
    "IStorage",
    "Storage",
    "IProviderClient",
    "WhapiClient",
    "IOcrClient",
    "DocumentAiClient",
    "INotifier",
    "Notifier",
    "TaskRunner",
    "ChatResolver",
    "DocumentProcessor",
    "IngestionPipeline",
    "IngestOutcome",
    "ProcessingResult",
    "ProcessingStatus",
]
