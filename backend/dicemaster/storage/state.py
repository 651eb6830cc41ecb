"""Host snapshot persistence with atomic writes to data/state.yaml."""

import logging
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from dicemaster.config import get_settings
from dicemaster.engine.models import EngineState
from dicemaster.services.ledger.models import LedgerSnapshot
from dicemaster.services.oracle.models import OracleSnapshot

logger = logging.getLogger(__name__)


class HostSnapshot(BaseModel):
    """Complete runtime state - matches data/state.yaml schema."""

    last_updated: datetime | None = None
    height: int = 0
    genesis_time: datetime
    engine: EngineState = Field(default_factory=EngineState)
    ledger: LedgerSnapshot = Field(default_factory=LedgerSnapshot)
    oracle: OracleSnapshot = Field(default_factory=OracleSnapshot)


def get_data_dir() -> Path:
    """Get the data directory path from settings."""
    settings = get_settings()
    data_dir = settings.data_dir

    if not data_dir.exists():
        raise FileNotFoundError(
            f"Data directory not found: {data_dir}. "
            "Run 'python -m dicemaster init' to create it."
        )

    return data_dir


def _get_state_path(data_dir: Path | None = None) -> Path:
    return (data_dir or get_data_dir()) / "state.yaml"


def load_snapshot(data_dir: Path | None = None) -> HostSnapshot | None:
    """Load the host snapshot, or None if nothing has been saved yet."""
    state_path = _get_state_path(data_dir)

    if not state_path.exists():
        logger.info(f"State file not found: {state_path}")
        return None

    try:
        with open(state_path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)

        if not raw_data:
            logger.warning(f"Empty state file: {state_path}")
            return None

        snapshot = HostSnapshot.model_validate(raw_data)
        logger.debug(f"Loaded state from {state_path}")
        return snapshot

    except yaml.YAMLError as e:
        logger.error(f"Corrupted YAML in state file: {e}")
        raise
    except Exception as e:
        logger.error(f"Failed to load state: {e}")
        raise


def save_snapshot(snapshot: HostSnapshot, data_dir: Path | None = None) -> Path:
    """Atomically save the host snapshot to data/state.yaml.

    Writes to a temporary file in the same directory and renames it over the
    old one, so a crash mid-write leaves the previous state intact.
    """
    state_path = _get_state_path(data_dir)

    snapshot.last_updated = datetime.now(timezone.utc)
    state_dict = snapshot.model_dump(mode="json")

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=state_path.parent,
            delete=False,
            suffix=".yaml",
            encoding="utf-8",
        ) as temp_file:
            yaml.dump(
                state_dict,
                temp_file,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
            temp_path = Path(temp_file.name)

        shutil.move(str(temp_path), str(state_path))
        logger.debug(f"Saved state to {state_path}")
        return state_path

    except Exception as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        logger.error(f"Failed to save state: {e}")
        raise
