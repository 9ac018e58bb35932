"""Diplomatic relation changes.

Scores run from 0 (hostile) to 100 (allied), 50 being neutral. A battle
sours relations between the two sides, more so when a city is taken, and
bystanders grow wary of the attacker while sympathising with the defender.
"""

from __future__ import annotations

from statecraft.models.country import CountryStats, clamp
from statecraft.parameters import (
    ATTACKER_RELATION_PENALTY,
    CAPTURE_EXTRA_PENALTY,
    DEFENDER_RELATION_PENALTY,
    DEFENDER_SYMPATHY_BONUS,
    DIPLOMACY_SCORE_MAX,
    DIPLOMACY_SCORE_MIN,
    FAILED_ATTACK_EXTRA_PENALTY,
    THIRD_PARTY_WAR_PENALTY,
)


def apply_relation_delta(stats: CountryStats, other_id: str, delta: int) -> CountryStats:
    """Shift one relation score, clamped to 0..100."""
    updated = stats.copy_stats()
    current = stats.relation(other_id)
    updated.diplomatic_relations[other_id] = int(clamp(current + delta, DIPLOMACY_SCORE_MIN, DIPLOMACY_SCORE_MAX))
    return updated


def apply_combat_relations(
    stats_by_country: dict[str, CountryStats],
    attacker_id: str,
    defender_id: str,
    captured: bool,
) -> None:
    """Apply the diplomatic fallout of one battle to ``stats_by_country`` in place."""
    attacker = stats_by_country.get(attacker_id)
    defender = stats_by_country.get(defender_id)
    if attacker is None or defender is None:
        return

    extra = CAPTURE_EXTRA_PENALTY if captured else FAILED_ATTACK_EXTRA_PENALTY
    stats_by_country[attacker_id] = apply_relation_delta(attacker, defender_id, ATTACKER_RELATION_PENALTY + extra)
    stats_by_country[defender_id] = apply_relation_delta(defender, attacker_id, DEFENDER_RELATION_PENALTY + extra)

    for other_id, other in list(stats_by_country.items()):
        if other_id in (attacker_id, defender_id):
            continue
        wary = apply_relation_delta(other, attacker_id, THIRD_PARTY_WAR_PENALTY)
        stats_by_country[other_id] = apply_relation_delta(wary, defender_id, DEFENDER_SYMPATHY_BONUS)
