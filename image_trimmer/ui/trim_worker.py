from __future__ import annotations

import threading
import traceback as _tb
from collections.abc import Callable

from PySide6.QtCore import QObject, Signal, Slot

from image_trimmer.errors import TrimmerError
from image_trimmer.logger import get_logger
from image_trimmer.ops.batch import BatchReport, CancelCheck, ProgressCallback

_logger = get_logger("trim_worker")

BatchJob = Callable[[ProgressCallback, CancelCheck], BatchReport]


class TrimWorker(QObject):
    """Runs one batch job (usually on a QThread) and relays its progress as signals."""

    progress = Signal(int, int)  # done, total
    finished = Signal(object)  # BatchReport
    failed = Signal(str)

    def __init__(self, job: BatchJob):
        super().__init__()
        self._job = job
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Request a stop; honored between batch items."""
        self._cancel.set()

    def is_cancelled(self) -> bool:
        return self._cancel.is_set()

    def _on_progress(self, done: int, total: int) -> None:
        self.progress.emit(done, total)

    @Slot()
    def run(self) -> None:
        try:
            report = self._job(self._on_progress, self.is_cancelled)
        except TrimmerError as e:
            _logger.error("batch failed: %s", e)
            self.failed.emit(str(e))
            return
        except Exception as e:
            _logger.error("batch crashed: %s\n%s", e, _tb.format_exc())
            self.failed.emit(f"Unexpected error: {e}")
            return
        self.finished.emit(report)
