from invoice_worker.config.settings import Settings
from invoice_worker.database.connection import close_pool, init_pool
from invoice_worker.database.repositories.document_repository import PostgresDocumentRepository
from invoice_worker.logging.logger import Log
from invoice_worker.processor.processor import build_processor
from invoice_worker.service.document_service import DocumentService
from invoice_worker.storage.local_storage import LocalFileStorage
from invoice_worker.worker.job_runner import JobRunner
from invoice_worker.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        repository = PostgresDocumentRepository()
        storage = LocalFileStorage(
            settings.storage_upload_dir, create_dirs=settings.storage_create_dirs
        )
        processor = build_processor(settings, repository=repository, storage=storage)
        service = DocumentService.create(settings, repository, storage)
        worker = Worker(repository, JobRunner(processor), service, settings)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
