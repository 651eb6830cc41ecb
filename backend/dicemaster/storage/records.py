"""Append-only audit log of engine records in data/records/{date}.jsonl."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import TypeAdapter

from dicemaster.engine.models import EngineRecord

from .state import get_data_dir

logger = logging.getLogger(__name__)

_record_adapter = TypeAdapter(EngineRecord)


def _records_dir(data_dir: Path | None = None) -> Path:
    return (data_dir or get_data_dir()) / "records"


def append_records(
    records: list[EngineRecord],
    data_dir: Path | None = None,
    when: datetime | None = None,
) -> Path | None:
    """Append records to the ledger file for the given day, one JSON object per line."""
    if not records:
        return None

    records_dir = _records_dir(data_dir)
    records_dir.mkdir(parents=True, exist_ok=True)

    date_str = (when or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    ledger_path = records_dir / f"{date_str}.jsonl"

    lines = "".join(
        _record_adapter.dump_json(record, by_alias=True).decode("utf-8") + "\n"
        for record in records
    )

    try:
        with open(ledger_path, "a", encoding="utf-8") as f:
            f.write(lines)

        logger.info(f"Logged {len(records)} records to {ledger_path}")
        return ledger_path

    except Exception as e:
        logger.error(f"Failed to log records: {e}")
        raise


def read_records(data_dir: Path | None = None) -> list[EngineRecord]:
    """Read every logged record, oldest day first."""
    records_dir = _records_dir(data_dir)
    if not records_dir.exists():
        return []

    records = []
    for path in sorted(records_dir.glob("*.jsonl")):
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    records.append(_record_adapter.validate_json(line))
    return records
