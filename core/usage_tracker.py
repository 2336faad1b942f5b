"""
Usage tracking for routed chat calls.

The tracker is an append-only, in-memory list of UsageRecord objects
owned by the application context. All queries are pure reductions over
a snapshot of the current records.
"""

import logging
import threading
import time
import uuid
from collections import defaultdict
from typing import Dict, Any, List

import numpy as np

from .data_models import UsageRecord

logger = logging.getLogger(__name__)

# Assumed average cost of a request through a non-routed tool
DEFAULT_BASELINE_COST_PER_CALL = 0.20


class UsageTracker:
    """Process-wide record of per-call cost and token usage"""

    def __init__(self, baseline_cost_per_call: float = DEFAULT_BASELINE_COST_PER_CALL):
        self.baseline_cost_per_call = baseline_cost_per_call
        self._records: List[UsageRecord] = []
        self._lock = threading.Lock()

    def add_record(
        self,
        provider: str,
        model_id: str,
        task_type: str,
        input_token_count: int,
        output_token_count: int,
        cost: float,
        succeeded: bool = True,
    ) -> UsageRecord:
        """
        Append a new usage record.

        Args:
            provider: Provider tag the call was dispatched to
            model_id: Model used for the call
            task_type: Task type the call was routed for
            input_token_count: Prompt tokens reported by the vendor
            output_token_count: Completion tokens reported by the vendor
            cost: Cost computed from the model's catalog price
            succeeded: Whether the call completed successfully

        Returns:
            UsageRecord: The stored record
        """
        now = time.time()
        record = UsageRecord(
            id=f"{int(now * 1000)}_{uuid.uuid4().hex[:9]}",
            timestamp=now,
            provider=provider,
            model_id=model_id,
            task_type=task_type,
            input_token_count=input_token_count,
            output_token_count=output_token_count,
            cost=cost,
            succeeded=succeeded,
        )
        with self._lock:
            self._records.append(record)
        logger.debug(f"Recorded usage {record.id}: {provider}/{model_id} cost={cost:.6f} succeeded={succeeded}")
        return record

    def clear_records(self) -> None:
        """Drop every record"""
        with self._lock:
            self._records = []

    @property
    def records(self) -> List[UsageRecord]:
        """Snapshot of the current records"""
        with self._lock:
            return list(self._records)

    def get_total_cost(self) -> float:
        return sum(record.cost for record in self.records)

    def get_total_calls(self) -> int:
        return len(self.records)

    def get_cost_by_provider(self) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for record in self.records:
            totals[record.provider] += record.cost
        return dict(totals)

    def get_cost_by_model(self) -> Dict[str, float]:
        """Cost grouped by ``provider/model_id``"""
        totals: Dict[str, float] = defaultdict(float)
        for record in self.records:
            totals[f"{record.provider}/{record.model_id}"] += record.cost
        return dict(totals)

    def get_calls_by_task_type(self) -> Dict[str, int]:
        counts: Dict[str, int] = defaultdict(int)
        for record in self.records:
            counts[record.task_type] += 1
        return dict(counts)

    def get_records_in_range(self, start: float, end: float) -> List[UsageRecord]:
        """Records whose timestamp falls within [start, end]"""
        return [r for r in self.records if start <= r.timestamp <= end]

    def get_savings_vs_baseline(self) -> float:
        """
        Estimated savings compared to a flat per-call baseline.

        The baseline is a configured assumption, not a measurement.
        """
        records = self.records
        total_cost = sum(record.cost for record in records)
        return len(records) * self.baseline_cost_per_call - total_cost

    def get_stats(self) -> Dict[str, Any]:
        """
        Get a summary of recorded usage.

        Returns:
            Dict[str, Any]: Totals, groupings and per-call averages
        """
        records = self.records
        costs = np.array([r.cost for r in records], dtype=float)
        tokens = np.array([r.input_token_count + r.output_token_count for r in records], dtype=float)
        successful = sum(1 for r in records if r.succeeded)

        return {
            "total_cost": float(costs.sum()) if records else 0.0,
            "total_calls": len(records),
            "successful_calls": successful,
            "failed_calls": len(records) - successful,
            "avg_cost_per_call": float(np.mean(costs)) if records else 0.0,
            "avg_tokens_per_call": float(np.mean(tokens)) if records else 0.0,
            "cost_by_provider": self.get_cost_by_provider(),
            "cost_by_model": self.get_cost_by_model(),
            "calls_by_task_type": self.get_calls_by_task_type(),
            "baseline_cost_per_call": self.baseline_cost_per_call,
            "savings_vs_baseline": self.get_savings_vs_baseline(),
        }
