# SPDX-License-Identifier: GPL-2.0-or-later
"""Local battles against a scripted opponent.

The boss writes its jokes with the text generation service and takes its
turn as soon as the player is done. Damage is resolved exactly like in
networked battles.
"""

import logging
from typing import Optional

from roastarena import jokegen
from roastarena.arena import damage
from roastarena.arena.battle import (
    AttackOutcome,
    Battle,
    Player,
    apply_attack,
    is_player_turn,
)

LOCAL_BATTLE_ID = 'local'
PLAYER_ID = 'player1'
BOSS_ID = 'boss'


def create_solo_battle(player_region: str, boss_region: str) -> Battle:
    return Battle(
        id=LOCAL_BATTLE_ID,
        players=[
            Player(id=PLAYER_ID, region=player_region),
            Player(id=BOSS_ID, region=boss_region, is_boss=True),
        ],
        turn=PLAYER_ID,
    )


class SoloDuel:
    """A player against the boss, without any network concern."""

    def __init__(
        self,
        player_region: str,
        boss_region: str,
        joke_client: Optional[jokegen.JokeClient] = None,
        rng=None,
        rules: damage.DamageRules = damage.DEFAULT_RULES,
    ):
        self.battle = create_solo_battle(player_region, boss_region)
        self.joke_client = joke_client
        self.rng = rng
        self.rules = rules

    @property
    def player(self) -> Player:
        return self.battle.player(PLAYER_ID)

    @property
    def boss(self) -> Player:
        return self.battle.player(BOSS_ID)

    @property
    def winner_id(self) -> Optional[str]:
        if not self.battle.finished:
            return None
        return PLAYER_ID if self.boss.hp == 0 else BOSS_ID

    def _apply(self, attacker_id, text) -> Optional[AttackOutcome]:
        if not is_player_turn(self.battle, attacker_id):
            return None
        return apply_attack(
            self.battle, attacker_id, text, rng=self.rng, rules=self.rules
        )

    def attack(self, text: str) -> Optional[AttackOutcome]:
        """Applies the player's joke. Does nothing out of turn."""
        return self._apply(PLAYER_ID, text)

    async def boss_turn(self, on_chunk=None) -> Optional[AttackOutcome]:
        """Has the boss write a joke about the player and hit with it.

        A jokegen.GenerationError is raised to the caller as is, leaving the
        battle untouched.
        """
        if not is_player_turn(self.battle, BOSS_ID):
            return None
        if self.joke_client is None:
            raise jokegen.GenerationError("no text generation service")
        text = await jokegen.generate_attack(
            self.joke_client,
            self.player.region,
            self.boss.region,
            on_chunk=on_chunk,
        )
        # The player cannot act while the boss writes, check anyway.
        outcome = self._apply(BOSS_ID, text)
        if outcome is not None:
            logging.debug(
                'boss hit for %d%s', outcome.damage,
                ' (critical)' if outcome.is_critical else '',
            )
        return outcome
