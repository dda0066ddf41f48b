"""
Connectivity analysis: detects macro-connectivity features (airports,
highways, metro, rail, ports, tech corridors, bus terminals, helipads,
local roads) within the connectivity radius and folds them into a single
0-100 index.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping

from analysis_models import DistanceDuration, Place, clamp, resolved_distance_km
from keyword_rules import rule_matches_place
from scoring_config import SCORING_MODEL, ConnectivityConfig, ConnectivityFeature, ScoringModel

logger = logging.getLogger(__name__)


@dataclass
class ConnectivityAnalysis:
    """Distance-weighted value and raw hit count per feature, plus the index."""
    weighted: Dict[str, float] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)
    index: float = 0.0

    def count(self, key: str) -> int:
        return self.counts.get(key, 0)


def connectivity_multiplier(distance_km: float, cfg: ConnectivityConfig) -> float:
    return max(cfg.min_multiplier, 1.0 - distance_km / cfg.decay_km)


def feature_value(feature: ConnectivityFeature, place: Place) -> float:
    if feature.upgrade_pattern and feature.upgrade_pattern in (place.name or "").lower():
        return feature.upgrade_value
    return feature.base_value


def analyze_connectivity(
    places: Iterable[Place],
    distances: Mapping[str, DistanceDuration],
    model: ScoringModel = SCORING_MODEL,
) -> ConnectivityAnalysis:
    cfg = model.connectivity
    result = ConnectivityAnalysis(
        weighted={f.key: 0.0 for f in cfg.features},
        counts={f.key: 0 for f in cfg.features},
    )

    for place in places:
        distance_km = resolved_distance_km(distances, place.place_id)
        if distance_km is None or distance_km > cfg.radius_km:
            continue
        multiplier = connectivity_multiplier(distance_km, cfg)
        for feature in cfg.features:
            if any(rule_matches_place(rule, place) for rule in feature.rules):
                result.weighted[feature.key] += feature_value(feature, place) * multiplier
                result.counts[feature.key] += 1

    raw_index = sum(result.weighted[f.key] * f.index_weight for f in cfg.features)
    result.index = clamp(raw_index, 0.0, cfg.index_max)
    logger.debug("Connectivity index %.1f from %s", result.index, result.counts)
    return result
