"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .config import Settings, resolve_db_path
from .logging_config import get_logger
from .notifier import Notifier
from .ocr import DocumentAiClient, IOcrClient
from .pipeline import ChatResolver, DocumentProcessor, IngestionPipeline, TaskRunner
from .providers import IProviderClient, WhapiClient
from .services import ChatService, MessageService, OrganizationService, SystemService
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Builds every collaborator once and wires them together."""

    def __init__(
        self,
        settings: Settings | None = None,
        db_path: str | None = None,
        provider: IProviderClient | None = None,
        ocr: IOcrClient | None = None,
    ):
        self.settings = settings or Settings.from_env()
        self._db_path = resolve_db_path(
            self.settings.database_url if db_path is None else db_path
        )
        self._provider_override = provider
        self._ocr_override = ocr
        self.started = False

        # Components (initialized in start())
        self._storage: IStorage | None = None
        self._provider: IProviderClient | None = None
        self._ocr: IOcrClient | None = None
        self._notifier: Notifier | None = None
        self._tasks: TaskRunner | None = None
        self._documents: DocumentProcessor | None = None
        self._ingestion: IngestionPipeline | None = None
        self._chats: ChatService | None = None
        self._messages: MessageService | None = None
        self._organizations: OrganizationService | None = None
        self._system: SystemService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. External clients
        self._provider = self._provider_override or WhapiClient(
            self.settings.whapi_base_url, self.settings.whapi_token
        )
        self._ocr = self._ocr_override or DocumentAiClient(
            self.settings.document_ai_project_id,
            self.settings.document_ai_location,
            self.settings.document_ai_processor_id,
        )
        if not self._ocr.configured:
            logger.warning("Document AI is not configured; attachments will fail OCR")

        # 3. Notifier and task runner
        self._notifier = Notifier()
        self._tasks = TaskRunner()

        # 4. Pipeline
        resolver = ChatResolver(self._storage, self._provider, self._notifier)
        self._documents = DocumentProcessor(
            self._storage, self._provider, self._ocr, self._notifier, self._tasks
        )
        self._ingestion = IngestionPipeline(
            self._storage, self._provider, self._notifier, resolver, self._documents
        )

        # 5. Services
        self._chats = ChatService(self._storage, self._provider, resolver)
        self._messages = MessageService(self._storage, self._provider, resolver)
        self._organizations = OrganizationService(self._storage, resolver)
        self._system = SystemService(self._storage, self._provider, self._ocr)

        self.started = True
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._tasks:
            await self._tasks.drain()
            logger.info("Background tasks drained")
        if self._provider:
            await self._provider.aclose()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")
        self.started = False

    def _require(self, component):
        if component is None:
            raise RuntimeError("Application not started")
        return component

    @property
    def storage(self) -> IStorage:
        return self._require(self._storage)

    @property
    def provider(self) -> IProviderClient:
        return self._require(self._provider)

    @property
    def ocr(self) -> IOcrClient:
        return self._require(self._ocr)

    @property
    def notifier(self) -> Notifier:
        return self._require(self._notifier)

    @property
    def tasks(self) -> TaskRunner:
        return self._require(self._tasks)

    @property
    def documents(self) -> DocumentProcessor:
        return self._require(self._documents)

    @property
    def ingestion(self) -> IngestionPipeline:
        return self._require(self._ingestion)

    @property
    def chats(self) -> ChatService:
        return self._require(self._chats)

    @property
    def messages(self) -> MessageService:
        return self._require(self._messages)

    @property
    def organizations(self) -> OrganizationService:
        return self._require(self._organizations)

    @property
    def system(self) -> SystemService:
        return self._require(self._system)
