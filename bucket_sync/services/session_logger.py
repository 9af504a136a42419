"""
Per-day session log recording what each sync run mapped and how it ended.
"""
import os
from datetime import datetime
from typing import Iterable, List, Optional

from loguru import logger

from ..models.data_models import SyncOutcome

SEPARATOR = '-' * 50
TIME_FORMAT = '%Y-%m-%d %H:%M:%S'


class SessionLogger:
    """
    Appends session records to ``sync_log_DD_MM_YYYY.log`` in a log directory.

    Writes never raise; a failed write is logged and reported by the return value.
    """

    def __init__(self, log_dir: str, now: Optional[datetime] = None):
        self.log_dir = log_dir
        self.log_file_path = self.log_file_for(log_dir, now or datetime.now())

    @staticmethod
    def log_file_for(log_dir: str, when: datetime) -> str:
        return os.path.join(log_dir, f"sync_log_{when.day:02d}_{when.month:02d}_{when.year}.log")

    def start_session(self, bucket: str, mapping_lines: Iterable[str],
                      when: Optional[datetime] = None) -> bool:
        """Write the session header and the resolved mapping list."""
        when = when or datetime.now()
        lines = [
            SEPARATOR,
            f"Sync Session Started - {when.strftime(TIME_FORMAT)} - Bucket: {bucket}",
        ]
        lines.extend(mapping_lines)
        return self._append(lines)

    def finish_session(self, bucket: str, outcome: SyncOutcome,
                       when: Optional[datetime] = None) -> bool:
        """Write the summary line, one line per failure and a closing separator."""
        when = when or outcome.finished_at or datetime.now()
        status = 'success' if outcome.success else f"failed ({len(outcome.failed)} errors)"

        lines = [
            f"Uploaded: {outcome.succeeded}/{outcome.total} files | "
            f"Time: {when.strftime(TIME_FORMAT)} | Bucket: {bucket} | Status: {status}"
        ]
        if outcome.skipped:
            lines.append("Skipped (not found):")
            lines.extend(f"  - {path}" for path in outcome.skipped)
        if outcome.failed:
            lines.append("Errors:")
            lines.extend(f"  - {error}" for error in outcome.failed)
        lines.append(SEPARATOR)
        return self._append(lines)

    def _append(self, lines: List[str]) -> bool:
        try:
            with open(self.log_file_path, 'a', encoding='utf-8') as log_file:
                for line in lines:
                    log_file.write(f"{line}\n")
            return True
        except OSError as e:
            logger.warning(f"Failed to write session log '{self.log_file_path}': {e}")
            return False
