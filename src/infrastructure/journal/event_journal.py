"""
Audit event journal.

Keeps the most recent audit records in a bounded deque and exports them
as a pandas DataFrame for inspection.
"""

from collections import deque
from threading import RLock

import pandas as pd
from loguru import logger

from src.core.constants import JOURNAL_TRIM_TO, MAX_JOURNAL_EVENTS
from src.core.enums import OperationKind
from src.core.exceptions.engine import ValidationError
from src.core.models.trade_record import TradeRecord

JOURNAL_COLUMNS = [
    "timestamp",
    "kind",
    "user_id",
    "market_id",
    "size_delta",
    "price",
    "margin_delta",
    "collateral_returned",
    "realized_pnl",
    "funding_payment",
    "bad_debt",
    "liquidation_fee",
    "insurance_penalty",
    "insurance_draw",
    "open_interest",
]


class EventJournal:
    """Bounded, thread-safe store of TradeRecords."""

    def __init__(self, max_events: int = MAX_JOURNAL_EVENTS, trim_to: int = JOURNAL_TRIM_TO):
        if max_events <= 0:
            raise ValidationError(f"max_events must be positive, got {max_events}")
        if not 0 < trim_to <= max_events:
            raise ValidationError(f"trim_to must be in (0, {max_events}], got {trim_to}")

        self.max_events = max_events
        self.trim_to = trim_to
        self._events: deque[TradeRecord] = deque()
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, record: TradeRecord) -> None:
        """Store one record, trimming the oldest entries when full."""
        if not isinstance(record, TradeRecord):
            raise ValidationError(f"record must be a TradeRecord, got {type(record).__name__}")

        with self._lock:
            self._events.append(record)

            if len(self._events) > self.max_events:
                # Keep only the most recent trim_to entries
                recent_entries = list(self._events)[-self.trim_to :]
                self._events.clear()
                self._events.extend(recent_entries)
                logger.debug(f"Event journal trimmed to {self.trim_to} entries")

    def records(
        self,
        user_id: str | None = None,
        market_id: str | None = None,
        kind: OperationKind | None = None,
    ) -> list[TradeRecord]:
        """Return stored records, oldest first, optionally filtered."""
        with self._lock:
            events = list(self._events)
        return [
            record
            for record in events
            if (user_id is None or record.user_id == user_id)
            and (market_id is None or record.market_id == market_id)
            and (kind is None or record.kind == kind)
        ]

    def latest(self) -> TradeRecord | None:
        """Most recent record, if any."""
        with self._lock:
            return self._events[-1] if self._events else None

    def to_frame(self, **filters: str | OperationKind | None) -> pd.DataFrame:
        """Export records as a DataFrame with one row per record."""
        rows = [record.to_dict() for record in self.records(**filters)]
        df = pd.DataFrame(rows, columns=JOURNAL_COLUMNS)
        if not df.empty:
            df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, format="ISO8601")
        return df

    def clear(self) -> None:
        """Drop all records."""
        with self._lock:
            self._events.clear()
