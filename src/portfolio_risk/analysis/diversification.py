import math
from collections.abc import Sequence

from portfolio_risk.models.analysis import CorrelationPair, SectorBucket


def sector_component(buckets: Sequence[SectorBucket]) -> float:
    if not buckets:
        return 0.0
    max_pct = max(b.percentage for b in buckets)
    return min(50.0, len(buckets) * 5 + (50 - max_pct * 0.5))


def correlation_component(pairs: Sequence[CorrelationPair]) -> float:
    mean_abs = sum(abs(p.correlation) for p in pairs) / len(pairs) if pairs else 0.0
    return max(0.0, 50 - mean_abs * 50)


class DiversificationScorer:
    """0-100 score: half sector spread, half low pairwise correlation."""

    def score(
        self,
        sector_buckets: Sequence[SectorBucket],
        correlation_pairs: Sequence[CorrelationPair],
    ) -> int:
        total = sector_component(sector_buckets) + correlation_component(
            correlation_pairs
        )
        # Half-up rounding; built-in round() would round half to even.
        return max(0, min(100, math.floor(total + 0.5)))
