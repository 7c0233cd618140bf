"""Run artifact persistence."""

from .storage import RunRecordStorage, DecimalEncoder

__all__ = ["RunRecordStorage", "DecimalEncoder"]
