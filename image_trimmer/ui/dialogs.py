"""Stateless file and folder pickers.

Every call takes the directory to start in and returns a `DialogResult`;
nothing is kept between calls.
"""

from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtWidgets import QFileDialog, QWidget

from image_trimmer.logger import get_logger
from image_trimmer.path_utils import abs_path_str, start_dir_for

_logger = get_logger("dialogs")

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.bmp *.tif *.tiff);;All files (*)"
ACCESS_FILTER = "Access databases (*.mdb *.accdb);;All files (*)"


@dataclass(frozen=True)
class DialogResult:
    path: str | None = None

    @property
    def cancelled(self) -> bool:
        return not self.path


def open_file(
    parent: QWidget | None, title: str, initial_dir: str | None = None, name_filter: str = "All files (*)"
) -> DialogResult:
    path, _selected = QFileDialog.getOpenFileName(parent, title, start_dir_for(initial_dir), name_filter)
    if not path:
        _logger.debug("open_file cancelled: %s", title)
        return DialogResult()
    return DialogResult(abs_path_str(path))


def choose_directory(parent: QWidget | None, title: str, initial_dir: str | None = None) -> DialogResult:
    path = QFileDialog.getExistingDirectory(parent, title, start_dir_for(initial_dir))
    if not path:
        _logger.debug("choose_directory cancelled: %s", title)
        return DialogResult()
    return DialogResult(abs_path_str(path))
