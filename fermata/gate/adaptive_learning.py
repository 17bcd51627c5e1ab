"""
Adaptive Threshold Learning for Fermata

Learns a context-specific base threshold from past gate outcomes.

History lives in an injected LearningHistoryStore keyed by context, so the
learner itself holds no global state:
- InMemoryLearningHistoryStore: per-key locks, for tests and single processes
- DiskLearningHistoryStore: diskcache transactions, shared across processes

Records outside the feedback window are ignored when learning and are only
removed by an explicit prune().
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog
from diskcache import Cache

from ..models import LearningOutcome, LearningRecord, NameContext

logger = structlog.get_logger(__name__)

DEFAULT_USER_SATISFACTION = 0.7


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


class LearningHistoryStore(ABC):
    """Append-only, context-keyed store of learning records."""

    @abstractmethod
    def append(self, record: LearningRecord) -> None:
        pass

    @abstractmethod
    def records(self, context_key: str) -> List[LearningRecord]:
        """All stored records for a context key, oldest first."""
        pass

    @abstractmethod
    def prune(self, older_than: datetime) -> int:
        """Drop records older than the cutoff; returns how many were removed."""
        pass


class InMemoryLearningHistoryStore(LearningHistoryStore):
    """Process-local store guarded by one lock per context key."""

    def __init__(self):
        self._records: Dict[str, List[LearningRecord]] = defaultdict(list)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, context_key: str) -> threading.Lock:
        with self._locks_guard:
            if context_key not in self._locks:
                self._locks[context_key] = threading.Lock()
            return self._locks[context_key]

    def append(self, record: LearningRecord) -> None:
        with self._lock_for(record.context_key):
            self._records[record.context_key].append(record)

    def records(self, context_key: str) -> List[LearningRecord]:
        with self._lock_for(context_key):
            return list(self._records.get(context_key, []))

    def prune(self, older_than: datetime) -> int:
        cutoff = _as_utc(older_than)
        removed = 0
        for context_key in list(self._records):
            with self._lock_for(context_key):
                kept = [r for r in self._records[context_key] if _as_utc(r.timestamp) >= cutoff]
                removed += len(self._records[context_key]) - len(kept)
                self._records[context_key] = kept
        return removed


class DiskLearningHistoryStore(LearningHistoryStore):
    """diskcache-backed store; read-modify-write happens inside a transaction."""

    KEY_PREFIX = "learning:"

    def __init__(self, cache: Cache):
        self.cache = cache

    @classmethod
    def from_cache_manager(cls, cache_manager) -> "DiskLearningHistoryStore":
        return cls(cache_manager.get_cache("learning"))

    def _key(self, context_key: str) -> str:
        return f"{self.KEY_PREFIX}{context_key}"

    def append(self, record: LearningRecord) -> None:
        key = self._key(record.context_key)
        with self.cache.transact():
            existing = self.cache.get(key, [])
            existing.append(record.model_dump(mode="json"))
            self.cache.set(key, existing)

    def records(self, context_key: str) -> List[LearningRecord]:
        raw = self.cache.get(self._key(context_key), [])
        return [LearningRecord.model_validate(item) for item in raw]

    def prune(self, older_than: datetime) -> int:
        cutoff = _as_utc(older_than)
        removed = 0
        with self.cache.transact():
            for key in list(self.cache):
                if not str(key).startswith(self.KEY_PREFIX):
                    continue
                records = [LearningRecord.model_validate(item) for item in self.cache.get(key, [])]
                kept = [r for r in records if _as_utc(r.timestamp) >= cutoff]
                removed += len(records) - len(kept)
                self.cache.set(key, [r.model_dump(mode="json") for r in kept])
        return removed


class AdaptiveThresholdLearner:
    """
    Context-keyed threshold learning.

    Responsibilities:
    - Derive the context key for a request
    - Blend the mode base threshold with the history-weighted threshold
    - Turn gate results into learning records
    """

    def __init__(
        self,
        store: LearningHistoryStore,
        window_days: int = 30,
        decay: float = 0.95,
        stability_bias: float = 0.7
    ):
        """
        Args:
            store: Where learning records live
            window_days: Feedback window; older records are ignored
            decay: Age weight base, applied as decay ** index (newest first)
            stability_bias: Share of the base threshold kept in the blend
        """
        self.store = store
        self.window_days = window_days
        self.decay = decay
        self.stability_bias = stability_bias

        self.logger = logger.bind(component="AdaptiveThresholdLearner")

    @staticmethod
    def context_key(context: NameContext) -> str:
        parts = [
            context.type.value,
            context.genre or 'any',
            context.target_audience.value if context.target_audience else 'any',
            context.market_context.value if context.market_context else 'balanced',
            context.quality_priority.value if context.quality_priority else 'balanced',
        ]
        return '_'.join(parts)

    def recent_records(self, context_key: str, now: Optional[datetime] = None) -> List[LearningRecord]:
        """Records inside the feedback window, newest first."""
        now = _as_utc(now or datetime.now(timezone.utc))
        cutoff = now - timedelta(days=self.window_days)
        recent = [r for r in self.store.records(context_key) if _as_utc(r.timestamp) > cutoff]
        return sorted(recent, key=lambda r: _as_utc(r.timestamp), reverse=True)

    def learned_threshold(
        self,
        context: NameContext,
        base_threshold: float,
        now: Optional[datetime] = None
    ) -> float:
        """
        Blend the base threshold with the weighted history for this context.
        Returns the base unchanged when there is no usable history.
        """
        context_key = self.context_key(context)
        records = self.recent_records(context_key, now)
        if not records:
            return base_threshold

        weighted_sum = 0.0
        total_weight = 0.0
        for index, record in enumerate(records):
            age_weight = self.decay ** index
            success_weight = max(
                0.0,
                (record.outcome.user_satisfaction + record.outcome.quality_improvement) / 2
            )
            weight = age_weight * success_weight
            weighted_sum += record.threshold_used * weight
            total_weight += weight

        if total_weight == 0:
            return base_threshold

        learned = weighted_sum / total_weight
        threshold = base_threshold * self.stability_bias + learned * (1 - self.stability_bias)

        self.logger.debug(
            "Learned threshold computed",
            context_key=context_key,
            records=len(records),
            base=base_threshold,
            learned=round(learned, 4),
            threshold=round(threshold, 4)
        )
        return round(threshold, 4)

    @staticmethod
    def determine_usage_pattern(qualified_count: int, total_count: int) -> str:
        ratio = qualified_count / total_count if total_count else 0.0
        if ratio > 0.8:
            return 'high_acceptance'
        if ratio > 0.5:
            return 'moderate_acceptance'
        if ratio > 0.2:
            return 'selective_acceptance'
        return 'low_acceptance'

    def build_outcome(self, qualified_count: int, gate_analysis: Dict[str, Any]) -> LearningOutcome:
        """Outcome of one gate run, read off its analysis."""
        total = gate_analysis.get("total_processed", 0)
        effectiveness = gate_analysis.get("threshold_effectiveness", {})
        impact = effectiveness.get("impact", {})

        quality_improvement = max(-1.0, min(1.0, impact.get("quality_improvement", 0.0)))
        quantity_impact = max(0.0, min(1.0, impact.get("quantity_reduction", 0.0)))

        return LearningOutcome(
            user_satisfaction=DEFAULT_USER_SATISFACTION,
            quality_improvement=round(quality_improvement, 4),
            quantity_impact=round(quantity_impact, 4),
            usage_pattern=self.determine_usage_pattern(qualified_count, total),
            success_metrics={
                "pass_rate": gate_analysis.get("pass_rate", 0.0),
                "average_quality": gate_analysis.get("average_quality", 0.0),
                "effectiveness_score": effectiveness.get("effectiveness_score", 0.0),
            },
        )

    def record_outcome(
        self,
        context: NameContext,
        threshold_used: float,
        qualified_count: int,
        gate_analysis: Dict[str, Any]
    ) -> LearningRecord:
        """Append a learning record for a finished gate run."""
        record = LearningRecord(
            context_key=self.context_key(context),
            threshold_used=threshold_used,
            outcome=self.build_outcome(qualified_count, gate_analysis),
        )
        self.store.append(record)

        self.logger.info(
            "Learning outcome recorded",
            context_key=record.context_key,
            threshold=threshold_used,
            usage_pattern=record.outcome.usage_pattern
        )
        return record

    def prune(self, now: Optional[datetime] = None) -> int:
        """Remove records that fell out of the feedback window."""
        now = _as_utc(now or datetime.now(timezone.utc))
        removed = self.store.prune(now - timedelta(days=self.window_days))
        self.logger.info("Learning history pruned", removed=removed)
        return removed
