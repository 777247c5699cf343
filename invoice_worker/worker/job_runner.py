from invoice_worker.logging.logger import Log
from invoice_worker.processor.exceptions import InvalidTransitionError, PipelineFatalError
from invoice_worker.processor.processor import Processor


class JobRunner:
    """Run one document through the processor and contain its exceptions."""

    def __init__(self, processor: Processor) -> None:
        self._processor = processor

    def run(self, document_id: int) -> None:
        Log.info("Running job", document_id=document_id)
        try:
            document = self._processor.process(document_id)
        except InvalidTransitionError as exc:
            Log.info("Document already claimed elsewhere", document_id=document_id, reason=exc)
        except PipelineFatalError as exc:
            Log.error("Failure could not be recorded", document_id=document_id, error=exc)
        except Exception as exc:
            Log.error("Job failed", document_id=document_id, error=exc)
        else:
            Log.info(
                "Job completed",
                document_id=document_id,
                status=document.status.value,
                errors=len(document.errors),
            )
