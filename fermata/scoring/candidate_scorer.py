"""
Candidate Scorer for Fermata

Runs analyzer collaborators for every name in a batch concurrently and
hands their partial results to the Dimension Aggregator.

Per-candidate analysis is independent, so the batch fans out behind a
bounded worker pool and joins before aggregation. Every analyzer call has a
timeout; a timeout or error becomes an empty partial result for that
analyzer, never a failed batch.
"""

import asyncio
import os
import time
from typing import Dict, List, Mapping, Optional, Sequence

import structlog

from ..analyzers import BaseAnalyzer, default_analyzers
from ..exceptions import AnalyzerUnavailable, InternalComputationError
from ..models import NameContext, ScoredCandidate
from .dimension_aggregator import AnalysisBundle, DimensionAggregator

logger = structlog.get_logger(__name__)


class CandidateScorer:
    """
    Concurrent per-candidate analysis.

    Responsibilities:
    - Fan out analyzer calls across the batch with a concurrency cap
    - Enforce per-call timeouts
    - Cache analyzer results by (analyzer, name, context)
    - Aggregate the joined results into ScoredCandidates
    """

    def __init__(
        self,
        analyzers: Optional[Sequence[BaseAnalyzer]] = None,
        aggregator: Optional[DimensionAggregator] = None,
        cache_manager=None,
        timeout_seconds: float = 2.0,
        max_concurrency: Optional[int] = None,
        cache_ttl: Optional[int] = None
    ):
        """
        Initialize the candidate scorer.

        Args:
            analyzers: Analyzer collaborators (defaults to the reference set)
            aggregator: Dimension aggregator
            cache_manager: Optional CacheManager for analyzer results
            timeout_seconds: Timeout for each analyzer call
            max_concurrency: Names analyzed at once (defaults to CPU count)
            cache_ttl: TTL for cached analyses (cache default if None)
        """
        self.analyzers = list(analyzers) if analyzers is not None else default_analyzers()
        self.aggregator = aggregator or DimensionAggregator()
        self.cache_manager = cache_manager
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max_concurrency or os.cpu_count() or 4
        self.cache_ttl = cache_ttl

        self.logger = logger.bind(component="CandidateScorer")
        self.logger.info(
            "Candidate scorer initialized",
            analyzers=[analyzer.name for analyzer in self.analyzers],
            max_concurrency=self.max_concurrency,
            timeout_seconds=timeout_seconds
        )

    async def score_batch(self, names: Sequence[str], context: NameContext) -> List[ScoredCandidate]:
        """
        Analyze and aggregate a batch of names.

        Args:
            names: Candidate names
            context: Request context shared by the batch

        Returns:
            One ScoredCandidate per name, in input order

        Raises:
            InternalComputationError: If the analysis fan-out itself fails
        """
        if not names:
            return []

        start_time = time.time()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        try:
            bundles = await asyncio.gather(*(
                self._analyze_name(name, context, semaphore) for name in names
            ))
        except Exception as e:
            raise InternalComputationError("analysis", str(e), e) from e

        candidates = self.aggregator.aggregate_batch(bundles)

        self.logger.info(
            "Batch scored",
            batch_size=len(candidates),
            failed_analyses=sum(len(bundle.failed_analyzers) for bundle in bundles),
            duration_ms=round((time.time() - start_time) * 1000, 1)
        )
        return candidates

    def neutral_batch(self, names: Sequence[str], context: NameContext) -> List[ScoredCandidate]:
        """All-neutral candidates for when analysis could not run at all."""
        failed = [analyzer.name for analyzer in self.analyzers]
        return self.aggregator.aggregate_batch([
            AnalysisBundle(name=name, context=context, failed_analyzers=list(failed))
            for name in names
        ])

    async def _analyze_name(
        self,
        name: str,
        context: NameContext,
        semaphore: asyncio.Semaphore
    ) -> AnalysisBundle:
        async with semaphore:
            start = time.perf_counter()
            outcomes = await asyncio.gather(
                *(self._run_analyzer(analyzer, name, context) for analyzer in self.analyzers),
                return_exceptions=True
            )
            elapsed_ms = (time.perf_counter() - start) * 1000

        results: Dict[str, Mapping[str, float]] = {}
        failed: List[str] = []
        for analyzer, outcome in zip(self.analyzers, outcomes):
            if isinstance(outcome, BaseException):
                failed.append(analyzer.name)
                self.logger.warning(
                    "Analyzer unavailable, using neutral defaults",
                    analyzer=analyzer.name,
                    name=name,
                    error=str(outcome)
                )
            else:
                results[analyzer.name] = outcome

        return AnalysisBundle(
            name=name,
            context=context,
            dimension_results=results,
            analysis_time_ms=round(elapsed_ms, 3),
            failed_analyzers=failed,
        )

    async def _run_analyzer(
        self,
        analyzer: BaseAnalyzer,
        name: str,
        context: NameContext
    ) -> Dict[str, float]:
        """
        Run one analyzer with caching and a timeout.

        Raises:
            AnalyzerUnavailable: On timeout, error, or malformed output
        """
        cache_key = None
        if self.cache_manager is not None:
            cache_key = self.cache_manager.generate_key(analyzer.name, name, context.to_key_dict())
            cached = self.cache_manager.get("analysis", cache_key)
            if cached is not None:
                return cached

        try:
            result = await asyncio.wait_for(
                analyzer.analyze(name, context),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            raise AnalyzerUnavailable(analyzer.name, name, f"timed out after {self.timeout_seconds}s")
        except Exception as e:
            raise AnalyzerUnavailable(analyzer.name, name, str(e)) from e

        if not isinstance(result, Mapping):
            raise AnalyzerUnavailable(analyzer.name, name, f"returned {type(result).__name__}")

        result = dict(result)
        if cache_key is not None and result:
            self.cache_manager.set("analysis", cache_key, result, ttl=self.cache_ttl)
        return result
