# SPDX-License-Identifier: GPL-2.0-or-later
import logging
from typing import Dict, Iterator, Optional

from roastarena.arena.battle import Battle


class BattleRegistry:
    """Live battles by id.

    Removing a battle is the only way to retire it. Unknown ids are not
    errors: a stale client event may reference a battle removed just before.
    """

    def __init__(self):
        self._battles: Dict[str, Battle] = {}

    def add(self, battle: Battle) -> None:
        """Registers `battle`. A live battle between the same two
        connections, in the same order, is replaced."""
        if battle.id in self._battles:
            logging.warning('replacing live battle %s', battle.id)
        self._battles[battle.id] = battle
        logging.debug('registered %s, %d live', battle.id, len(self))

    def get(self, battle_id: str) -> Optional[Battle]:
        return self._battles.get(battle_id)

    def remove(self, battle_id: str) -> Optional[Battle]:
        battle = self._battles.pop(battle_id, None)
        if battle is not None:
            logging.debug('retired %s, %d live', battle_id, len(self))
        return battle

    def __contains__(self, battle_id) -> bool:
        return battle_id in self._battles

    def __len__(self) -> int:
        return len(self._battles)

    def __iter__(self) -> Iterator[Battle]:
        return iter(list(self._battles.values()))

    def __repr__(self):
        return f'<BattleRegistry {sorted(self._battles)!r}>'
