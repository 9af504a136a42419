"""
Bounded-concurrency upload of FileTasks with progress and failure aggregation.
"""
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, List, Optional, Sequence

from loguru import logger

from ..exceptions import UploadFailure
from ..models.config import DEFAULT_CONCURRENCY
from ..models.data_models import FileTask, SyncOutcome
from ..utils import get_mime_type
from .status import StatusSink


class UploadScheduler:
    """
    Uploads tasks on a fixed pool of worker threads.

    Every task runs to a terminal state; a failed upload is recorded and the
    remaining uploads carry on. Failed files are not retried within a run.
    """

    def __init__(self, client: Any, bucket: str, status_sink: Optional[StatusSink] = None,
                 concurrency: int = DEFAULT_CONCURRENCY):
        """
        Args:
            client: Bucket access handle with a ``put_object`` method
            bucket: Destination bucket
            status_sink: Receives progress lines, logged when omitted
            concurrency: Maximum number of uploads in flight
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.client = client
        self.bucket = bucket
        self.status_sink = status_sink or StatusSink()
        self.concurrency = concurrency

        self._completed = 0
        self._completed_lock = threading.Lock()

    def run(self, tasks: Sequence[FileTask]) -> SyncOutcome:
        """
        Upload every task and wait for all of them to finish.

        Returns:
            SyncOutcome with success count and one message per failed file
        """
        started_at = datetime.now()
        total = len(tasks)
        self._completed = 0

        if total == 0:
            self.status_sink.report("No files to upload!", 1.0, False)
            return SyncOutcome(total=0, succeeded=0, started_at=started_at,
                               finished_at=datetime.now())

        logger.info(f"Uploading {total} files to bucket {self.bucket} "
                    f"with {self.concurrency} workers")

        failed: List[str] = []
        with ThreadPoolExecutor(max_workers=self.concurrency,
                                thread_name_prefix='upload') as executor:
            futures = {executor.submit(self._upload, task, total): task for task in tasks}

            for future in as_completed(futures):
                task = futures[future]
                try:
                    future.result()
                except UploadFailure as e:
                    logger.error(str(e))
                    failed.append(str(e))
                except Exception as e:
                    error_msg = f"Unexpected error uploading {task.local_path}: {e}"
                    logger.error(error_msg)
                    failed.append(error_msg)

        succeeded = total - len(failed)
        outcome = SyncOutcome(
            total=total,
            succeeded=succeeded,
            failed=tuple(failed),
            started_at=started_at,
            finished_at=datetime.now()
        )

        if outcome.success:
            self.status_sink.report("Sync complete!", 1.0, False)
        else:
            self.status_sink.report(
                f"Completed {succeeded}/{total}, {len(failed)} errors", 1.0, True
            )

        logger.info(f"Upload finished - {outcome.summary()}")
        return outcome

    def _upload(self, task: FileTask, total: int) -> None:
        content_type = get_mime_type(task.local_path)
        logger.debug(f"Uploading {task.local_path} -> {self.bucket}/{task.destination_key} "
                     f"({content_type})")

        try:
            body = open(task.local_path, 'rb')
        except OSError as e:
            raise UploadFailure(task.destination_key,
                                f"Failed to open {task.local_path}: {e}") from e

        with body:
            try:
                self.client.put_object(self.bucket, task.destination_key, content_type, body)
            except UploadFailure:
                raise
            except Exception as e:
                raise UploadFailure(task.destination_key,
                                    f"Upload failed for {task.destination_key}: {e}") from e

        with self._completed_lock:
            self._completed += 1
            completed = self._completed

        logger.debug(f"Uploaded: {task.destination_key}")

        # The object is stored, a sink error must not turn it into a failure
        display_name = os.path.basename(task.local_path)
        try:
            self.status_sink.report(f"Uploading: {display_name} ({completed}/{total})",
                                    completed / total, False)
        except Exception as e:
            logger.warning(f"Progress report failed for {task.destination_key}: {e}")
