"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/export_service.py
CSV/JSON export of result rows and loading of reference signature sets.

Rows from the repository merge can carry different Repository<Key> columns, so the
output schema is always the union of every row's keys (first-seen order), never the
key set of the first row alone.
"""
import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO

from filesig.core.errors import ReferenceFormatError
from filesig.core.models import HashAlgorithm, ReferenceRecord
from filesig.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)


class ExportService:
    """Schema-union serialization of flat result rows."""

    @staticmethod
    def to_rows(records: Iterable[Any]) -> List[Dict[str, Any]]:
        """Rows of any record type exposing to_row()."""
        return [record.to_row() for record in records]

    @staticmethod
    def collect_field_names(rows: Iterable[Dict[str, Any]]) -> List[str]:
        """Ordered union of keys across all rows."""
        names: Dict[str, None] = {}
        for row in rows:
            for key in row:
                names.setdefault(key, None)
        return list(names)

    @staticmethod
    def _csv_value(value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, datetime):
            return ConvertUtils.format_timestamp(value)
        if isinstance(value, (dict, list)):
            return json.dumps(value, default=str)
        return value

    @staticmethod
    def _json_value(value: Any) -> Any:
        if isinstance(value, datetime):
            return ConvertUtils.format_timestamp(value)
        return value

    @classmethod
    def write_csv(cls, rows: List[Dict[str, Any]], stream: TextIO) -> int:
        """Write rows as CSV with a header covering every column. Returns rows written."""
        field_names = cls.collect_field_names(rows)
        writer = csv.DictWriter(stream, fieldnames=field_names, restval="", lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow({key: cls._csv_value(value) for key, value in row.items()})
        return len(rows)

    @classmethod
    def write_json(cls, rows: List[Dict[str, Any]], stream: TextIO) -> int:
        """Write rows as a JSON array; every object carries the full column union."""
        field_names = cls.collect_field_names(rows)
        normalized = [
            {name: cls._json_value(row.get(name)) for name in field_names}
            for row in rows
        ]
        json.dump(normalized, stream, indent=2, default=str)
        stream.write("\n")
        return len(rows)

    @classmethod
    def write(cls, rows: List[Dict[str, Any]], stream: TextIO, fmt: str = "csv") -> int:
        if fmt == "csv":
            return cls.write_csv(rows, stream)
        if fmt == "json":
            return cls.write_json(rows, stream)
        raise ValueError(f"Unsupported output format: '{fmt}'")


class ReferenceLoader:
    """
    Reads reference signature sets from CSV or JSON.

    Expected columns: Filename plus <Algo>Hash (bare <Algo> also accepted), matched
    case-insensitively. A present-but-blank cell means "supplied but empty"; an absent
    column or key means "not supplied".
    """

    @staticmethod
    def _resolve_columns(headers: Iterable[str]) -> Dict[str, Optional[str]]:
        by_upper = {header.strip().upper(): header for header in headers if header}
        columns: Dict[str, Optional[str]] = {"Filename": by_upper.get("FILENAME")}
        for algorithm in HashAlgorithm.get_all():
            columns[algorithm.value] = (
                by_upper.get(algorithm.hash_field.upper()) or by_upper.get(algorithm.value)
            )
        return columns

    @classmethod
    def _to_record(cls, row: Dict[str, Any], columns: Dict[str, Optional[str]], origin: str) -> ReferenceRecord:
        filename = row.get(columns["Filename"])
        if filename is None:
            raise ReferenceFormatError(f"Reference entry without Filename in {origin}: {row!r}")

        digests = {}
        for algorithm in HashAlgorithm.get_all():
            column = columns[algorithm.value]
            if column is None or column not in row or row[column] is None:
                continue
            digests[algorithm] = str(row[column]).strip()
        return ReferenceRecord(filename=str(filename).strip(), digests=digests)

    @classmethod
    def load_csv(cls, stream: TextIO, origin: str = "<csv>") -> List[ReferenceRecord]:
        reader = csv.DictReader(stream)
        columns = cls._resolve_columns(reader.fieldnames or [])
        if columns["Filename"] is None:
            raise ReferenceFormatError(f"Reference data in {origin} has no Filename column")
        return [cls._to_record(row, columns, origin) for row in reader]

    @classmethod
    def load_json(cls, stream: TextIO, origin: str = "<json>") -> List[ReferenceRecord]:
        try:
            payload = json.load(stream)
        except ValueError as e:
            raise ReferenceFormatError(f"Invalid JSON reference data in {origin}: {e}") from e

        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise ReferenceFormatError(f"Reference data in {origin} must be a JSON array of objects")

        records = []
        for item in payload:
            if not isinstance(item, dict):
                raise ReferenceFormatError(f"Reference entry in {origin} is not an object: {item!r}")
            columns = cls._resolve_columns(item.keys())
            if columns["Filename"] is None:
                raise ReferenceFormatError(f"Reference entry without Filename in {origin}: {item!r}")
            records.append(cls._to_record(item, columns, origin))
        return records

    @classmethod
    def load(cls, path: str) -> List[ReferenceRecord]:
        """Load a reference file; the .json extension selects JSON, anything else CSV."""
        file_path = Path(path)
        try:
            with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
                if file_path.suffix.lower() == ".json":
                    records = cls.load_json(f, origin=str(file_path))
                else:
                    records = cls.load_csv(f, origin=str(file_path))
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise ReferenceFormatError(f"Cannot read reference file {file_path}: {e}") from e

        logger.debug(f"Loaded {len(records)} reference records from {file_path}")
        return records
