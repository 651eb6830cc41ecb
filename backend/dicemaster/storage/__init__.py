"""Storage layer for DiceMaster - file-based persistence.

This package provides:
- Snapshot management (load/save engine, ledger and oracle state from data/state.yaml)
- Audit log (append emitted records to data/records/{date}.jsonl)

Snapshots are written atomically to prevent corruption.
"""

from .records import append_records, read_records
from .state import HostSnapshot, get_data_dir, load_snapshot, save_snapshot

__all__ = [
    "HostSnapshot",
    "get_data_dir",
    "load_snapshot",
    "save_snapshot",
    "append_records",
    "read_records",
]
