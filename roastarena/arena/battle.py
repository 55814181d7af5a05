# SPDX-License-Identifier: GPL-2.0-or-later
"""Battle entity and lifecycle.

A battle holds exactly two players. Attacks are applied in place on the
Battle object: holders of a reference always see the current state.
"""

import dataclasses
import logging
from typing import Dict, List, Optional

from roastarena.arena import damage

MAX_HP = 100

ACTIVE = 'active'
FINISHED = 'finished'


@dataclasses.dataclass
class Player:
    id: str
    region: str
    hp: int = MAX_HP
    is_boss: bool = False

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'region': self.region,
            'hp': self.hp,
            'isBoss': self.is_boss,
        }


@dataclasses.dataclass
class Battle:
    """Two-player contest with a turn pointer.

    ``turn`` is the id of the player whose attack is accepted next, or None
    once the battle is finished.
    """

    id: str
    players: List[Player]
    turn: Optional[str]
    status: str = ACTIVE

    @property
    def finished(self) -> bool:
        return self.status == FINISHED

    def player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def is_member(self, player_id: str) -> bool:
        return self.player(player_id) is not None

    def opponent_of(self, player_id: str) -> Optional[Player]:
        """Returns the other player, None if `player_id` is not a member."""
        if not self.is_member(player_id):
            return None
        for p in self.players:
            if p.id != player_id:
                return p
        return None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'status': self.status,
            'turn': self.turn,
            'players': [p.to_dict() for p in self.players],
        }


@dataclasses.dataclass(frozen=True)
class AttackOutcome:
    damage: int
    is_critical: bool
    finished: bool
    winner_id: Optional[str]


def battle_id(player_a_id: str, player_b_id: str) -> str:
    return f'battle_{player_a_id}_{player_b_id}'


def create_battle(player_a, player_b) -> Battle:
    """Builds a battle between two participants; `player_a` plays first.

    Participants only need ``id`` and ``region`` attributes.
    """
    return Battle(
        id=battle_id(player_a.id, player_b.id),
        players=[
            Player(id=player_a.id, region=player_a.region),
            Player(id=player_b.id, region=player_b.region),
        ],
        turn=player_a.id,
    )


def is_player_turn(battle: Battle, player_id: str) -> bool:
    return battle.status == ACTIVE and battle.turn == player_id


def apply_attack(
    battle: Battle,
    attacker_id: str,
    text: str,
    rng=None,
    rules: damage.DamageRules = damage.DEFAULT_RULES,
) -> Optional[AttackOutcome]:
    """Hits the opponent of `attacker_id` with `text`, in place.

    Returns None without touching the battle if the attacker is not a player
    of the battle or if the battle is already over. Turn order is not
    checked here: callers only pass attacks from the player whose turn it is.
    """
    if battle.finished:
        return None
    defender = battle.opponent_of(attacker_id)
    if defender is None:
        return None

    result = damage.resolve(text, rng=rng, rules=rules)
    defender.hp = max(0, defender.hp - result.damage)
    battle.turn = defender.id

    finished = defender.hp == 0
    if finished:
        battle.status = FINISHED
        battle.turn = None
        logging.info(
            'battle %s: %s knocked out %s', battle.id, attacker_id, defender.id
        )

    return AttackOutcome(
        damage=result.damage,
        is_critical=result.is_critical,
        finished=finished,
        winner_id=attacker_id if finished else None,
    )
