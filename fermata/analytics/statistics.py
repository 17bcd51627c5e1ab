"""
Statistics Helpers for Fermata

Numeric helpers shared by the gate analysis, the ranking engine and
batch analytics, built on numpy. Every function returns a neutral value
for degenerate input (empty batches, a single value, zero variance)
instead of raising, and plain Python floats so results serialize cleanly.
"""

from typing import Any, Dict, List, Sequence

import numpy as np

QUALITY_BRACKETS = [
    (0.8, 1.0, "Excellent"),
    (0.6, 0.8, "Good"),
    (0.4, 0.6, "Fair"),
    (0.2, 0.4, "Poor"),
    (0.0, 0.2, "Very Poor"),
]


def _array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(_array(values)))


def median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(_array(values)))


def variance(values: Sequence[float]) -> float:
    """Population variance."""
    if len(values) < 2:
        return 0.0
    return float(np.var(_array(values)))


def std_dev(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(_array(values)))


def skewness(values: Sequence[float]) -> float:
    """Population skewness; 0 when the spread is zero or the sample is tiny."""
    if len(values) < 3:
        return 0.0
    arr = _array(values)
    deviation = np.std(arr)
    if deviation == 0:
        return 0.0
    return float(np.mean(((arr - arr.mean()) / deviation) ** 3))


def percentile(values: Sequence[float], fraction: float) -> float:
    """Linear-interpolated percentile, fraction in [0, 1]."""
    if len(values) == 0:
        return 0.0
    fraction = min(max(fraction, 0.0), 1.0)
    return float(np.percentile(_array(values), fraction * 100))


def iqr_outliers(values: Sequence[float]) -> List[float]:
    """Values outside 1.5 IQR of the quartiles."""
    if len(values) < 4:
        return []
    arr = _array(values)
    q1, q3 = np.percentile(arr, [25, 75])
    spread = q3 - q1
    mask = (arr < q1 - 1.5 * spread) | (arr > q3 + 1.5 * spread)
    return [float(value) for value in arr[mask]]


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r; 0 when either series is constant or too short."""
    n = min(len(xs), len(ys))
    if n < 2:
        return 0.0
    x, y = _array(xs[:n]), _array(ys[:n])
    if np.std(x) == 0 or np.std(y) == 0:
        return 0.0
    r = np.corrcoef(x, y)[0, 1]
    if np.isnan(r):
        return 0.0
    return float(np.clip(r, -1.0, 1.0))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors. Two zero vectors are
    treated as identical; a zero vector against a non-zero one as unrelated.
    """
    va, vb = _array(a), _array(b)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 and norm_b == 0:
        return 1.0
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def quality_brackets(values: Sequence[float]) -> List[Dict[str, Any]]:
    """Count scores per quality bracket. The top bracket includes 1.0."""
    arr = _array(values)
    total = len(arr)
    brackets = []
    for low, high, label in QUALITY_BRACKETS:
        upper = arr <= high if high >= 1.0 else arr < high
        count = int(np.count_nonzero((arr >= low) & upper))
        brackets.append({
            "range": f"{low:.1f}-{high:.1f}",
            "label": label,
            "count": count,
            "percentage": round(count / total * 100, 1) if total else 0.0,
        })
    return brackets


def distribution_stats(values: Sequence[float]) -> Dict[str, Any]:
    """Summary statistics for a list of scores."""
    values = list(values)
    return {
        "count": len(values),
        "mean": round(mean(values), 4),
        "median": round(median(values), 4),
        "std_dev": round(std_dev(values), 4),
        "min": round(float(np.min(values)), 4) if values else 0.0,
        "max": round(float(np.max(values)), 4) if values else 0.0,
        "skewness": round(skewness(values), 4),
        "brackets": quality_brackets(values),
        "outliers": [round(value, 4) for value in iqr_outliers(values)],
    }


def correlation_matrix(series: Dict[str, Sequence[float]]) -> Dict[str, Dict[str, float]]:
    """Pairwise Pearson r for named series; the diagonal is 1."""
    names = list(series)
    matrix: Dict[str, Dict[str, float]] = {name: {} for name in names}
    for i, first in enumerate(names):
        matrix[first][first] = 1.0
        for second in names[i + 1:]:
            r = round(pearson_correlation(series[first], series[second]), 4)
            matrix[first][second] = r
            matrix[second][first] = r
    return matrix
