from __future__ import annotations

from typing import Iterable

from .models import ScoredPlan

DEFAULT_CLOSENESS_THRESHOLD = 5.0


def _quality_key(item: ScoredPlan) -> tuple:
    # completeness desc, flags asc, then name and id for a total order
    return (
        -item.plan.completeness_score,
        len(item.verification_flags),
        item.plan.plan_name,
        item.plan.plan_id,
    )


def compare_scored_plans(
    a: ScoredPlan, b: ScoredPlan, closeness_threshold: float = DEFAULT_CLOSENESS_THRESHOLD,
) -> int:
    """Pairwise precedence: negative if *a* ranks above *b*, positive if below, 0 if identical."""
    diff = a.total_score - b.total_score
    if abs(diff) > closeness_threshold:
        return -1 if diff > 0 else 1
    ka, kb = _quality_key(a), _quality_key(b)
    if ka == kb:
        return 0
    return -1 if ka < kb else 1


def score_bands(
    scored: Iterable[ScoredPlan], closeness_threshold: float = DEFAULT_CLOSENESS_THRESHOLD,
) -> list[list[ScoredPlan]]:
    """
    Partition plans into score bands.

    A band is anchored at the highest score not yet assigned and takes every
    plan scoring within the threshold of that anchor. Bands come out highest
    first, so the pairwise "within threshold" rule only ever applies inside a
    band and the overall order stays transitive.
    """
    ordered = sorted(scored, key=lambda s: (-s.total_score, s.plan.plan_id))
    bands: list[list[ScoredPlan]] = []
    for item in ordered:
        if bands and bands[-1][0].total_score - item.total_score <= closeness_threshold:
            bands[-1].append(item)
        else:
            bands.append([item])
    return bands


def rank_scored_plans(
    scored: Iterable[ScoredPlan], closeness_threshold: float = DEFAULT_CLOSENESS_THRESHOLD,
) -> list[ScoredPlan]:
    """Order scored plans best first. Independent of input order."""
    if closeness_threshold < 0:
        raise ValueError("closeness_threshold must be non-negative")
    ranked: list[ScoredPlan] = []
    for band in score_bands(scored, closeness_threshold):
        ranked.extend(sorted(band, key=_quality_key))
    return ranked
