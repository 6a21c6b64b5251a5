from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QThread
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from image_trimmer.errors import TrimmerError
from image_trimmer.image_engine.access_db import AccessDatabase
from image_trimmer.logger import get_logger
from image_trimmer.ops.batch import BatchReport, trim_database, trim_directory, trim_file
from image_trimmer.settings_manager import SettingsManager
from image_trimmer.ui import dialogs
from image_trimmer.ui.trim_worker import BatchJob, TrimWorker

_logger = get_logger("main_window")


class MainWindow(QMainWindow):
    """Three actions: trim one image, trim a folder, extract and trim database pictures."""

    def __init__(self, settings: SettingsManager | None = None):
        super().__init__()
        self.settings = settings or SettingsManager()
        self._thread: QThread | None = None
        self._worker: TrimWorker | None = None
        self._out_dir: str | None = None

        self.setWindowTitle("Image Trimmer")
        central = QWidget(self)
        layout = QVBoxLayout(central)

        buttons = QHBoxLayout()
        self.open_file_button = QPushButton("Open image...", central)
        self.open_dir_button = QPushButton("Open folder...", central)
        self.open_db_button = QPushButton("Retrieve from database...", central)
        for b in (self.open_file_button, self.open_dir_button, self.open_db_button):
            buttons.addWidget(b)
        layout.addLayout(buttons)

        self.status_label = QLabel("", central)
        layout.addWidget(self.status_label)

        progress_row = QHBoxLayout()
        self.progress_bar = QProgressBar(central)
        self.progress_bar.setVisible(False)
        self.cancel_button = QPushButton("Cancel", central)
        self.cancel_button.setVisible(False)
        progress_row.addWidget(self.progress_bar)
        progress_row.addWidget(self.cancel_button)
        layout.addLayout(progress_row)

        self.setCentralWidget(central)

        self.open_file_button.clicked.connect(self.on_open_file)
        self.open_dir_button.clicked.connect(self.on_open_directory)
        self.open_db_button.clicked.connect(self.on_open_database)
        self.cancel_button.clicked.connect(self.on_cancel)

    # ----- helpers ---------------------------------------------------------

    def _remember_dir(self, path: str) -> None:
        folder = path if Path(path).is_dir() else str(Path(path).parent)
        self.settings.set("last_dir", folder)

    def _set_busy(self, busy: bool) -> None:
        for b in (self.open_file_button, self.open_dir_button, self.open_db_button):
            b.setEnabled(not busy)
        self.progress_bar.setVisible(busy)
        self.cancel_button.setVisible(busy)
        self.cancel_button.setEnabled(busy)
        if not busy:
            self.progress_bar.setValue(0)

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    # ----- actions ---------------------------------------------------------

    def on_open_file(self) -> None:
        result = dialogs.open_file(self, "Choose an image", self.settings.last_dir, dialogs.IMAGE_FILTER)
        if result.cancelled:
            return
        self._remember_dir(result.path)
        src = Path(result.path)
        try:
            out_path = trim_file(src, src.parent, f"{src.stem}.trim", self.settings.trim_options())
        except TrimmerError as e:
            _logger.warning("trim failed: %s: %s", src, e)
            QMessageBox.critical(self, "Trim Error", f"Failed to trim {src.name}:\n{e}")
            return
        self.status_label.setText(f"Saved {out_path}")
        QMessageBox.information(self, "Image saved", f"Image trimmed and saved to:\n{out_path}")

    def on_open_directory(self) -> None:
        src = dialogs.choose_directory(self, "Choose a folder with images", self.settings.last_dir)
        if src.cancelled:
            return
        self._remember_dir(src.path)
        dst = dialogs.choose_directory(self, "Choose where to save trimmed images", src.path)
        if dst.cancelled:
            return
        options = self.settings.trim_options()

        def job(progress, is_cancelled) -> BatchReport:
            return trim_directory(src.path, dst.path, options, progress, is_cancelled)

        self.start_batch(job, dst.path)

    def on_open_database(self) -> None:
        db_file = dialogs.open_file(self, "Choose an Access database", self.settings.last_dir, dialogs.ACCESS_FILTER)
        if db_file.cancelled:
            return
        self._remember_dir(db_file.path)
        dst = dialogs.choose_directory(self, "Choose where to save images", self.settings.last_dir)
        if dst.cancelled:
            return
        db = AccessDatabase(db_file.path, driver=self.settings.get("odbc_driver"))
        query = self.settings.get("db_query")
        id_column = self.settings.get("id_column")
        blob_column = self.settings.get("blob_column")
        options = self.settings.trim_options()

        def job(progress, is_cancelled) -> BatchReport:
            return trim_database(db, dst.path, query, id_column, blob_column, options, progress, is_cancelled)

        self.start_batch(job, dst.path)

    def on_cancel(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            self.cancel_button.setEnabled(False)
            self.status_label.setText("Cancelling...")

    # ----- batch plumbing --------------------------------------------------

    def start_batch(self, job: BatchJob, out_dir: str) -> None:
        if self.is_running:
            _logger.debug("batch already running")
            return
        self._out_dir = out_dir
        self._set_busy(True)
        self.status_label.setText("Working...")

        thread = QThread(self)
        worker = TrimWorker(job)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.progress.connect(self.on_progress)
        worker.finished.connect(self.on_batch_finished)
        worker.failed.connect(self.on_batch_failed)
        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)
        thread.finished.connect(self._cleanup_thread)
        self._thread = thread
        self._worker = worker
        thread.start()

    def on_progress(self, done: int, total: int) -> None:
        self.progress_bar.setMaximum(max(total, 1))
        self.progress_bar.setValue(done)

    def on_batch_finished(self, report: BatchReport) -> None:
        self._set_busy(False)
        ok = len(report.succeeded)
        failed = report.failed
        text = f"{ok} of {report.total} image(s) trimmed and saved to:\n{self._out_dir}"
        if report.cancelled:
            text += "\n\nCancelled before finishing."
        if failed:
            lines = "\n".join(f"{i.source}: {i.error}" for i in failed[:10])
            more = f"\n... and {len(failed) - 10} more" if len(failed) > 10 else ""
            text += f"\n\n{len(failed)} failed:\n{lines}{more}"
        self.status_label.setText(f"{ok} of {report.total} saved")
        QMessageBox.information(self, "Images saved", text)

    def on_batch_failed(self, message: str) -> None:
        self._set_busy(False)
        self.status_label.setText("Failed")
        QMessageBox.critical(self, "Trim Error", message)

    def _cleanup_thread(self) -> None:
        if self._worker is not None:
            self._worker.deleteLater()
        if self._thread is not None:
            self._thread.deleteLater()
        self._worker = None
        self._thread = None

    def closeEvent(self, event) -> None:  # type: ignore[override]
        if self._worker is not None:
            self._worker.cancel()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait(2000)
        super().closeEvent(event)
