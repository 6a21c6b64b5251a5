from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Any

from image_trimmer.errors import DatabaseError
from image_trimmer.logger import get_logger

_logger = get_logger("access_db")

DEFAULT_DRIVER = "Microsoft Access Driver (*.mdb, *.accdb)"
DEFAULT_QUERY = "SELECT * FROM OLE WHERE idOle > 10"
DEFAULT_ID_COLUMN = "idOle"
DEFAULT_BLOB_COLUMN = "object"


class AccessDatabase:
    """Reads OLE picture fields from an Access (.mdb/.accdb) file over ODBC.

    Each query opens its own connection and closes it before returning.
    """

    def __init__(self, file_name: str | Path, driver: str = DEFAULT_DRIVER):
        self.file_name = str(file_name)
        self.driver = driver

    @property
    def connection_string(self) -> str:
        return f"DRIVER={{{self.driver}}};DBQ={self.file_name};"

    def _connect(self) -> Any:
        try:
            import pyodbc  # type: ignore
        except ImportError as e:
            raise DatabaseError("pyodbc is not installed; cannot read Access databases") from e
        try:
            return pyodbc.connect(self.connection_string, autocommit=True)
        except pyodbc.Error as e:
            raise DatabaseError(f"Cannot open database {self.file_name}: {e}") from e

    def get_ole_blobs(
        self, query: str = DEFAULT_QUERY, id_column: str = DEFAULT_ID_COLUMN, blob_column: str = DEFAULT_BLOB_COLUMN
    ) -> dict[int, bytes]:
        """Run `query` and map each row's id to its raw OLE field bytes, in row order."""
        conn = self._connect()
        blobs: dict[int, bytes] = {}
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(query)
                columns = [d[0] for d in cursor.description or ()]
                lookup = {c.lower(): i for i, c in enumerate(columns)}
                try:
                    id_idx = lookup[id_column.lower()]
                    blob_idx = lookup[blob_column.lower()]
                except KeyError as e:
                    raise DatabaseError(
                        f"Query result lacks column {e.args[0]!r}; available: {', '.join(columns)}"
                    ) from e
                for row in cursor:
                    blob = row[blob_idx]
                    if blob is None:
                        _logger.debug("row %s: empty OLE field, skipped", row[id_idx])
                        continue
                    blobs[int(row[id_idx])] = bytes(blob)
            finally:
                with contextlib.suppress(Exception):
                    cursor.close()
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Query failed on {self.file_name}: {e}") from e
        finally:
            with contextlib.suppress(Exception):
                conn.close()
        _logger.info("fetched %d OLE field(s) from %s", len(blobs), self.file_name)
        return blobs

