"""
Shared fixtures for the Fermata test suite.

Candidates are built through the real DimensionAggregator from explicit
breakdown values, so every test works with fully-formed ScoredCandidates.
"""

from typing import Dict, Optional, Sequence

import pytest

from fermata.config import FermataSettings
from fermata.models import SCORE_FIELDS, NameContext, ScoredCandidate
from fermata.scoring import AnalysisBundle, DimensionAggregator


def uniform_scores(value: float, **overrides: float) -> Dict[str, float]:
    """Every breakdown field at value, with per-field overrides."""
    scores = {field_name: value for field_name in SCORE_FIELDS}
    scores.update(overrides)
    return scores


def build_candidates(
    specs: Sequence[tuple],
    context: NameContext,
    aggregator: Optional[DimensionAggregator] = None
) -> list:
    """Aggregate (name, scores) pairs as one batch."""
    aggregator = aggregator or DimensionAggregator()
    return aggregator.aggregate_batch([
        AnalysisBundle(name=name, context=context, dimension_results=scores)
        for name, scores in specs
    ])


@pytest.fixture
def band_context():
    """Band context with no offsets; the moderate threshold stays at 0.65."""
    return NameContext(type="band")


@pytest.fixture
def rock_context():
    return NameContext(
        type="band",
        genre="rock",
        mood="energetic",
        target_audience="mainstream",
        market_context="commercial",
    )


@pytest.fixture
def candidate_factory(band_context):
    """Build a single ScoredCandidate from uniform breakdown values."""
    def _make(name: str, value: float = 0.7, context: Optional[NameContext] = None, **overrides) -> ScoredCandidate:
        return build_candidates([(name, uniform_scores(value, **overrides))], context or band_context)[0]
    return _make


@pytest.fixture
def batch_factory(band_context):
    """Build a batch of ScoredCandidates from (name, value) pairs."""
    def _make(pairs: Sequence[tuple], context: Optional[NameContext] = None):
        specs = [(name, uniform_scores(value)) for name, value in pairs]
        return build_candidates(specs, context or band_context)
    return _make


@pytest.fixture
def make_scores():
    return uniform_scores


@pytest.fixture
def scored_batch(band_context):
    """Build a batch from (name, breakdown dict) pairs."""
    def _make(specs: Sequence[tuple], context: Optional[NameContext] = None):
        return build_candidates(specs, context or band_context)
    return _make


@pytest.fixture
def test_settings(tmp_path):
    """Settings that keep caches and logs inside the test's temp directory."""
    return FermataSettings(
        log_dir=str(tmp_path / "logs"),
        cache_enabled=False,
        cache_dir=str(tmp_path / "cache"),
        max_concurrent_analyses=4,
        max_batch_size=20,
    )
