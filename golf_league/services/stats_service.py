"""
Score-to-beat helpers.

A player's score to beat is the rounded average of their most recent rounds;
a group's score to beat is the rounded mean of its players' averages.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.database.models import Event, Player, Score
from golf_league.utils.constants import SCORE_TO_BEAT_MIN_ROUNDS, SCORE_TO_BEAT_WINDOW

logger = logging.getLogger(__name__)


@dataclass
class PlayerStat:
    average: float
    rounds_played: int


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; scores round .5 up
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def get_player_score_to_beat(player_stat: Optional[PlayerStat]) -> str:
    """Rounded average, or "New" for players with fewer than 6 rounds."""
    if player_stat is None or player_stat.rounds_played < SCORE_TO_BEAT_MIN_ROUNDS:
        return "New"
    return str(_round_half_up(player_stat.average))


def get_group_score_to_beat(
    player_ids: List[int],
    player_stats_map: Dict[int, PlayerStat],
) -> Optional[str]:
    """
    Average of the players' averages, using every player with at least one round.

    Returns:
        Rounded average as a string, or None if the group is empty or nobody
        in it has played
    """
    if not player_ids:
        return None

    valid = []
    for player_id in player_ids:
        stat = player_stats_map.get(player_id)
        if stat and stat.rounds_played > 0 and stat.average > 0:
            valid.append(stat.average)

    if not valid:
        return None
    return str(_round_half_up(sum(valid) / len(valid)))


async def get_player_stats(
    session: AsyncSession,
    player_ids: Iterable[int],
) -> Dict[int, PlayerStat]:
    """Average of each player's most recent rounds, keyed by player ID."""
    ids = list(set(player_ids))
    if not ids:
        return {}

    result = await session.execute(
        select(Score.player_id, Score.gross_score)
        .join(Event, Score.event_id == Event.id)
        .where(Score.player_id.in_(ids))
        .order_by(Score.player_id, Event.date.desc(), Score.id.desc())
    )

    recent: Dict[int, List[int]] = {}
    for player_id, gross in result.all():
        scores = recent.setdefault(player_id, [])
        if len(scores) < SCORE_TO_BEAT_WINDOW:
            scores.append(gross)

    return {
        player_id: PlayerStat(average=sum(scores) / len(scores), rounds_played=len(scores))
        for player_id, scores in recent.items()
    }


async def record_score(
    session: AsyncSession,
    event_id: int,
    player_id: int,
    gross_score: int,
) -> Dict:
    """Create or replace a player's gross score for an event."""
    if gross_score <= 0:
        raise ValueError("gross_score must be positive")
    if await session.get(Event, event_id) is None:
        raise ValueError("Event not found")
    if await session.get(Player, player_id) is None:
        raise ValueError("Player not found")

    result = await session.execute(
        select(Score).where(Score.event_id == event_id, Score.player_id == player_id)
    )
    score = result.scalar_one_or_none()
    if score is None:
        score = Score(event_id=event_id, player_id=player_id, gross_score=gross_score)
        session.add(score)
    else:
        score.gross_score = gross_score
    await session.commit()
    await session.refresh(score)
    return {
        "id": score.id,
        "event_id": score.event_id,
        "player_id": score.player_id,
        "gross_score": score.gross_score,
    }
