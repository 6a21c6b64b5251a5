"""Trim workflows: single file, directory batch and database batch.

These functions carry no UI dependency. Progress is reported through a plain
`(done, total)` callback that only ever receives non-decreasing counts ending
at `total`; cancellation is a callable checked between items, and a cancelled
batch reports `(total, total)` as its last step so the count still ends at total.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from image_trimmer.errors import DecodeError, EmptyImage, EncodeError, MalformedOleData, TrimmerError
from image_trimmer.image_engine.access_db import (
    DEFAULT_BLOB_COLUMN,
    DEFAULT_ID_COLUMN,
    DEFAULT_QUERY,
    AccessDatabase,
)
from image_trimmer.image_engine.decoder import DEFAULT_EXTENSION, decode_bytes, decode_file, save_image
from image_trimmer.image_engine.ole import unwrap_ole_image
from image_trimmer.logger import get_logger
from image_trimmer.trim.pixel_buffer import PixelBuffer, PixelFormat, Threshold
from image_trimmer.trim.transparency import TransparencyMapper
from image_trimmer.trim.trimmer import DEFAULT_THRESHOLD, trim

_logger = get_logger("batch")

ProgressCallback = Callable[[int, int], None]
CancelCheck = Callable[[], bool]

# Per-item failures that are recorded in the report instead of aborting the batch
_ITEM_ERRORS = (DecodeError, EmptyImage, EncodeError, MalformedOleData)


@dataclass
class BatchItem:
    source: str
    output: str | None = None
    orig_size: tuple[int, int] = (0, 0)
    trimmed_size: tuple[int, int] = (0, 0)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    items: list[BatchItem] = field(default_factory=list)
    total: int = 0
    cancelled: bool = False

    @property
    def succeeded(self) -> list[BatchItem]:
        return [i for i in self.items if i.ok]

    @property
    def failed(self) -> list[BatchItem]:
        return [i for i in self.items if not i.ok]


@dataclass
class TrimOptions:
    threshold: Threshold = DEFAULT_THRESHOLD
    extension: str = DEFAULT_EXTENSION
    make_transparent: bool = False
    transparency_from: int = 250
    transparency_to: int = 255

    def __post_init__(self) -> None:
        if not 0 <= self.transparency_from <= self.transparency_to <= 255:
            raise ValueError(f"Invalid gray range: {self.transparency_from}..{self.transparency_to}")


def _with_alpha(buffer: PixelBuffer) -> PixelBuffer:
    if buffer.pixel_format.has_alpha:
        return buffer
    arr = buffer.as_array()
    alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
    return PixelBuffer.from_array(np.concatenate([arr, alpha], axis=2), PixelFormat(buffer.pixel_format.order + "A"))


def process_buffer(buffer: PixelBuffer, options: TrimOptions) -> PixelBuffer:
    """Trim a decoded buffer and, if requested, map near-white grays to transparent."""
    trimmed = trim(buffer, options.threshold)
    if options.make_transparent:
        mapper = TransparencyMapper(options.transparency_from, options.transparency_to)
        trimmed = mapper.apply(_with_alpha(trimmed), in_place=True)
    return trimmed


def _run_item(
    item: BatchItem,
    buffer_factory: Callable[[], PixelBuffer],
    out_dir: str | Path,
    name: str,
    options: TrimOptions,
) -> None:
    buffer = buffer_factory()
    item.orig_size = (buffer.width, buffer.height)
    trimmed = process_buffer(buffer, options)
    item.trimmed_size = (trimmed.width, trimmed.height)
    item.output = save_image(trimmed, out_dir, name, options.extension)


def trim_file(
    path: str | Path, out_dir: str | Path, name: str = "image", options: TrimOptions | None = None
) -> str:
    """Decode `path`, trim it and save it as `<out_dir>/<name>.<ext>`. Errors propagate."""
    options = options or TrimOptions()
    item = BatchItem(source=str(path))
    _run_item(item, lambda: decode_file(path), out_dir, name, options)
    _logger.info("trimmed %s: %dx%d -> %dx%d", path, *item.orig_size, *item.trimmed_size)
    return item.output or ""


def _run_batch(
    jobs: list[tuple[str, str, Callable[[], PixelBuffer]]],
    out_dir: str | Path,
    options: TrimOptions,
    progress: ProgressCallback | None,
    is_cancelled: CancelCheck | None,
) -> BatchReport:
    report = BatchReport(total=len(jobs))
    if progress:
        progress(0, report.total)
    for done, (source, name, factory) in enumerate(jobs, start=1):
        if is_cancelled and is_cancelled():
            report.cancelled = True
            _logger.info("batch cancelled after %d of %d item(s)", done - 1, report.total)
            if progress:
                progress(report.total, report.total)
            break
        item = BatchItem(source=source)
        try:
            _run_item(item, factory, out_dir, name, options)
        except _ITEM_ERRORS as e:
            item.error = str(e)
            _logger.warning("trim failed: %s: %s", source, e)
        report.items.append(item)
        if progress:
            progress(done, report.total)
    _logger.info(
        "batch finished: %d ok, %d failed, %d total",
        len(report.succeeded),
        len(report.failed),
        report.total,
    )
    return report


def list_image_candidates(src_dir: str | Path) -> list[Path]:
    """Regular, non-hidden files of `src_dir` in name order."""
    root = Path(src_dir)
    if not root.is_dir():
        raise TrimmerError(f"Not a directory: {root}")
    return sorted(p for p in root.iterdir() if p.is_file() and not p.name.startswith("."))


def trim_directory(
    src_dir: str | Path,
    out_dir: str | Path,
    options: TrimOptions | None = None,
    progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> BatchReport:
    """Trim every file of `src_dir` into `out_dir` as image_<index>.<ext>."""
    options = options or TrimOptions()
    files = list_image_candidates(src_dir)
    jobs = [(str(p), f"image_{i}", (lambda p=p: decode_file(p))) for i, p in enumerate(files)]
    _logger.info("trimming %d file(s) from %s into %s", len(jobs), src_dir, out_dir)
    return _run_batch(jobs, out_dir, options, progress, is_cancelled)


def trim_database(
    db: AccessDatabase,
    out_dir: str | Path,
    query: str = DEFAULT_QUERY,
    id_column: str = DEFAULT_ID_COLUMN,
    blob_column: str = DEFAULT_BLOB_COLUMN,
    options: TrimOptions | None = None,
    progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> BatchReport:
    """Extract OLE pictures selected by `query`, trim them and save as image_<id>.<ext>."""
    options = options or TrimOptions()
    blobs = db.get_ole_blobs(query, id_column, blob_column)
    jobs = [
        (f"{db.file_name}#{row_id}", f"image_{row_id}", (lambda blob=blob: decode_bytes(unwrap_ole_image(blob))))
        for row_id, blob in blobs.items()
    ]
    _logger.info("trimming %d OLE picture(s) from %s into %s", len(jobs), db.file_name, out_dir)
    return _run_batch(jobs, out_dir, options, progress, is_cancelled)
