"""
CSV reader for order import files.

The whole file is parsed up front: any structural problem raises ParseError
before a single row reaches the engine, so a bad file never leaves partial
writes behind.
"""

import csv
import io
from pathlib import Path

from taxflow.core.exceptions import ParseError
from taxflow.core.models import OPTIONAL_COLUMNS, REQUIRED_COLUMNS, RawOrderRow


class CSVOrderReader:
    """
    Reads order rows from CSV with a header line.

    Expected columns: id, latitude, longitude, subtotal and optionally
    timestamp, in any order. Header names are matched case-insensitively.
    """

    def __init__(self, delimiter: str = ","):
        """
        Initialize CSV reader.

        Args:
            delimiter: Field delimiter
        """
        self.delimiter = delimiter

    def read_path(self, file_path: str | Path) -> list[RawOrderRow]:
        """
        Read a CSV file from disk.

        Raises:
            ParseError: If the file is unreadable or malformed
        """
        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read {file_path}: {e}") from e
        return self.read_bytes(data)

    def read_bytes(self, data: bytes) -> list[RawOrderRow]:
        """
        Read CSV from raw bytes (UTF-8, optional BOM).

        Raises:
            ParseError: If the bytes are not UTF-8 or the CSV is malformed
        """
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"File is not valid UTF-8: {e}") from e
        return self.read_text(text)

    def read_text(self, text: str) -> list[RawOrderRow]:
        """
        Parse CSV text into rows.

        Blank lines are skipped and cell values are trimmed.

        Returns:
            Rows in file order

        Raises:
            ParseError: Missing header, missing or unknown columns, or a
                row whose field count differs from the header
        """
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter, strict=True)
        rows: list[RawOrderRow] = []

        try:
            header = self._read_header(reader)
            for cells in reader:
                if not any(cell.strip() for cell in cells):
                    continue
                if len(cells) != len(header):
                    raise ParseError(
                        f"expected {len(header)} fields, got {len(cells)}",
                        line_number=reader.line_num,
                    )
                values = {name: cell.strip() for name, cell in zip(header, cells)}
                if not values.get("timestamp"):
                    values.pop("timestamp", None)
                rows.append(RawOrderRow(**values, line_number=reader.line_num))
        except csv.Error as e:
            raise ParseError(f"Invalid CSV: {e}", line_number=reader.line_num) from e

        return rows

    def _read_header(self, reader) -> list[str]:
        for cells in reader:
            if any(cell.strip() for cell in cells):
                header = [cell.strip().lower() for cell in cells]
                break
        else:
            raise ParseError("CSV has no header row")

        duplicates = sorted({name for name in header if header.count(name) > 1})
        if duplicates:
            raise ParseError(f"Duplicate columns: {', '.join(duplicates)}", line_number=reader.line_num)

        missing = [name for name in REQUIRED_COLUMNS if name not in header]
        if missing:
            raise ParseError(f"Missing required columns: {', '.join(missing)}", line_number=reader.line_num)

        known = set(REQUIRED_COLUMNS) | set(OPTIONAL_COLUMNS)
        unknown = [name for name in header if name not in known]
        if unknown:
            raise ParseError(f"Unknown columns: {', '.join(unknown)}", line_number=reader.line_num)

        return header
