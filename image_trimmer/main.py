import os
import sys
from pathlib import Path

from image_trimmer.errors import TrimmerError
from image_trimmer.logger import get_logger, setup_logger

# --- CLI logging options -----------------------------------------------------
# To prevent Qt from exiting due to unknown options, we preemptively parse
# our own logging options, reflect them in environment variables
# (IMAGE_TRIMMER_LOG_LEVEL, IMAGE_TRIMMER_LOG_CATS), and remove them from argv.


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    import argparse

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv)
    if args.log_level:
        os.environ["IMAGE_TRIMMER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["IMAGE_TRIMMER_LOG_CATS"] = args.log_cats
    setup_logger()
    return remaining


def _channel_level(value: str) -> int:
    import argparse

    try:
        level = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if not 0 <= level <= 255:
        raise argparse.ArgumentTypeError(f"must be in 0..255, got {level}")
    return level


def _build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="image-trimmer",
        description="Crop light borders from images, or extract and trim pictures from an Access database.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--file", help="Trim a single image file")
    mode.add_argument("--dir", help="Trim every file of a folder")
    mode.add_argument("--db", help="Extract and trim OLE pictures from an Access database")
    parser.add_argument("--out", help="Output folder (must exist; defaults to the source folder for --file)")
    parser.add_argument("--name", help="Output base name for --file (default: <stem>.trim)")
    parser.add_argument("--query", help="SQL query selecting the OLE rows for --db")
    parser.add_argument("--id-column", help="Id column for --db")
    parser.add_argument("--blob-column", help="OLE field column for --db")
    parser.add_argument(
        "--threshold", nargs=3, type=_channel_level, metavar=("R", "G", "B"), help="Background limits (0..255)"
    )
    parser.add_argument("--ext", help="Output file extension (default: png)")
    parser.add_argument("--transparent", action="store_true", help="Make near-white grays transparent")
    parser.add_argument("--settings", help="Settings file path")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    return parser


def _options_from_args(args, settings):
    from dataclasses import replace

    from image_trimmer.trim.pixel_buffer import Threshold

    options = settings.trim_options()
    if args.threshold:
        options = replace(options, threshold=Threshold(*args.threshold))
    if args.ext:
        options = replace(options, extension=args.ext)
    if args.transparent:
        options = replace(options, make_transparent=True)
    return options


def _run_headless(args, settings) -> int:
    from image_trimmer.image_engine.access_db import AccessDatabase
    from image_trimmer.ops.batch import trim_database, trim_directory, trim_file

    logger = get_logger("main")
    try:
        options = _options_from_args(args, settings)
    except ValueError as e:
        logger.error("invalid trim options: %s", e)
        return 2

    def _progress(done: int, total: int) -> None:
        logger.info("progress: %d/%d", done, total)

    try:
        if args.file:
            src = Path(args.file)
            out_dir = args.out or str(src.parent)
            out_path = trim_file(src, out_dir, args.name or f"{src.stem}.trim", options)
            logger.info("saved %s", out_path)
            return 0
        if not args.out:
            logger.error("--out is required with --dir/--db")
            return 2
        if args.dir:
            report = trim_directory(args.dir, args.out, options, _progress)
        else:
            db = AccessDatabase(args.db, driver=settings.get("odbc_driver"))
            report = trim_database(
                db,
                args.out,
                args.query or settings.get("db_query"),
                args.id_column or settings.get("id_column"),
                args.blob_column or settings.get("blob_column"),
                options,
                _progress,
            )
    except TrimmerError as e:
        logger.error("%s", e)
        return 1
    for item in report.failed:
        logger.warning("failed: %s: %s", item.source, item.error)
    return 1 if report.failed else 0


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    from image_trimmer.settings_manager import SettingsManager

    if argv is None:
        argv = sys.argv

    remaining = _apply_cli_logging_options(argv[1:])
    try:
        args = _build_parser().parse_args(remaining)
    except SystemExit as e:
        return int(e.code or 0)

    settings = SettingsManager(args.settings)
    if args.file or args.dir or args.db:
        return _run_headless(args, settings)

    from PySide6.QtWidgets import QApplication

    from image_trimmer.ui.main_window import MainWindow

    app = QApplication.instance() or QApplication([argv[0]])
    window = MainWindow(settings)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
