"""AI -> player trade offers.

AI countries do not execute trades with players directly. Instead, a
proposal involving a player is turned into a proposed deal that the player
must confirm before it expires. Offers are rate-limited per (AI, player)
pair by an explicit OfferCooldowns table.

Offer schedule:
    - no offer while the pair is cooling down (3 turns)
    - only on turns where turn % 3 is 0 or 1
    - the AI holds more than 40 units of a staple resource, and the player
      holds fewer than 30 units of one
"""

from __future__ import annotations

import logging

from statecraft.models.country import CountryStats
from statecraft.models.deals import Deal, DealStatus, DealTerms
from statecraft.parameters import (
    OFFER_LIFETIME,
    OFFER_RESOURCES,
    OFFER_SHORTAGE_THRESHOLD,
    OFFER_SURPLUS_THRESHOLD,
)
from statecraft.trade.cooldowns import OfferCooldowns
from statecraft.trade.planner import TradeProposal

logger = logging.getLogger(__name__)

OFFER_TURN_PERIOD = 3
OFFER_TURN_PHASES = (0, 1)


class TradeOfferService:
    """Decides when an AI country offers a trade to a player, and drafts the deal."""

    def should_offer(
        self,
        ai_stats: CountryStats | None,
        player_stats: CountryStats | None,
        turn: int,
        cooldowns: OfferCooldowns,
    ) -> bool:
        """Check cooldown, schedule and a surplus/shortage match.

        Args:
            ai_stats: Offering AI country's current stats
            player_stats: Player country's current stats
            turn: Current turn
            cooldowns: Offer cooldown table for the game

        Returns:
            True when an offer should be sent this turn
        """
        if ai_stats is None or player_stats is None:
            return False

        ai_id, player_id = ai_stats.country_id, player_stats.country_id
        if cooldowns.is_cooling_down(ai_id, player_id, turn):
            logger.debug(
                f"Offer cooldown active for {ai_id} -> {player_id} "
                f"(last offer: turn {cooldowns.last_offer(ai_id, player_id)}, current: {turn})"
            )
            return False

        if turn % OFFER_TURN_PERIOD not in OFFER_TURN_PHASES:
            return False

        ai_has_surplus = any(ai_stats.resource(r) > OFFER_SURPLUS_THRESHOLD for r in OFFER_RESOURCES)
        player_has_shortage = any(player_stats.resource(r) < OFFER_SHORTAGE_THRESHOLD for r in OFFER_RESOURCES)
        if not (ai_has_surplus and player_has_shortage):
            logger.debug(
                f"No offer opportunity for {ai_id} -> {player_id}: "
                f"surplus={ai_has_surplus}, shortage={player_has_shortage}"
            )
            return False
        return True

    def create_offer(
        self,
        proposal: TradeProposal,
        game_id: str,
        turn: int,
        cooldowns: OfferCooldowns,
        deal_id: str | None = None,
    ) -> Deal:
        """Draft a proposed deal from a planner proposal and start the pair's cooldown."""
        deal = Deal(
            id=deal_id or proposal.deal_id(game_id, turn, "offer"),
            game_id=game_id,
            proposing_country_id=proposal.proposer_id,
            receiving_country_id=proposal.receiver_id,
            deal_type="trade",
            terms=DealTerms(
                proposer_commitments=list(proposal.proposer_commitments),
                receiver_commitments=list(proposal.receiver_commitments),
            ),
            status=DealStatus.PROPOSED,
            turn_created=turn,
            turn_expires=turn + OFFER_LIFETIME,
            requires_confirmation=True,
        )
        cooldowns.record(proposal.proposer_id, proposal.receiver_id, turn)
        logger.info(f"{proposal.proposer_id} offered a trade to {proposal.receiver_id} (deal {deal.id})")
        return deal
