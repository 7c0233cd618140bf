"""Per-cycle run record storage."""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from rebalancer.core.models import RunRecord

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class RunRecordStorage:
    """
    One JSON file per cycle with the selected weights and the signals behind them.

    Directory structure:
        storage_dir/
            run_{timestamp}.json

    Records are written for observability only; a failed write is logged and
    never interrupts the scheduler.
    """

    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save(self, record: RunRecord) -> Optional[Path]:
        """
        Write a run record.

        Returns:
            Path of the written file, or None if the write failed
        """
        file_path = self.storage_dir / f"run_{record.timestamp.strftime('%Y%m%dT%H%M%S%f')}.json"
        try:
            with open(file_path, "w") as f:
                json.dump(record.to_dict(), f, cls=DecimalEncoder, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write run record {file_path}: {e}")
            return None
        logger.debug(f"Saved run record: {file_path}")
        return file_path

    def list_records(self) -> List[Dict[str, Any]]:
        """All stored records, newest first."""
        records = []
        for file_path in sorted(self.storage_dir.glob("run_*.json"), reverse=True):
            with open(file_path, "r") as f:
                records.append(json.load(f))
        return records

    def latest(self) -> Optional[Dict[str, Any]]:
        records = self.list_records()
        return records[0] if records else None
