import pytest

pytest.importorskip("PySide6")

from image_trimmer.errors import DatabaseError  # noqa: E402
from image_trimmer.ops.batch import BatchItem, BatchReport  # noqa: E402
from image_trimmer.ui.trim_worker import TrimWorker  # noqa: E402


def _collect(worker: TrimWorker):
    events = {"progress": [], "finished": [], "failed": []}
    worker.progress.connect(lambda d, t: events["progress"].append((d, t)))
    worker.finished.connect(lambda r: events["finished"].append(r))
    worker.failed.connect(lambda m: events["failed"].append(m))
    return events


def test_worker_relays_progress_and_report():
    def job(progress, is_cancelled):
        report = BatchReport(total=2)
        progress(0, 2)
        for i in range(2):
            report.items.append(BatchItem(source=f"img{i}"))
            progress(i + 1, 2)
        return report

    worker = TrimWorker(job)
    events = _collect(worker)
    worker.run()

    assert events["progress"] == [(0, 2), (1, 2), (2, 2)]
    assert len(events["finished"]) == 1
    assert events["finished"][0].total == 2
    assert events["failed"] == []


def test_worker_cancel_flag_reaches_job():
    seen = []

    def job(progress, is_cancelled):
        seen.append(is_cancelled())
        return BatchReport(cancelled=is_cancelled())

    worker = TrimWorker(job)
    events = _collect(worker)
    worker.cancel()
    worker.run()

    assert seen == [True]
    assert events["finished"][0].cancelled


def test_worker_reports_domain_errors():
    def job(progress, is_cancelled):
        raise DatabaseError("Cannot open database x.mdb")

    worker = TrimWorker(job)
    events = _collect(worker)
    worker.run()

    assert events["failed"] == ["Cannot open database x.mdb"]
    assert events["finished"] == []


def test_worker_reports_unexpected_errors():
    def job(progress, is_cancelled):
        raise RuntimeError("boom")

    worker = TrimWorker(job)
    events = _collect(worker)
    worker.run()

    assert events["failed"] == ["Unexpected error: boom"]
