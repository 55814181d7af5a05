# SPDX-License-Identifier: GPL-2.0-or-later
"""Single-slot matchmaking.

At most one participant waits at a time. The next distinct participant is
paired with it, and the one who waited plays first.
"""

import dataclasses
import logging
from typing import Any, Optional

from roastarena.arena.battle import Battle, create_battle

WAITING = 'waiting'
DUPLICATE = 'duplicate'
PAIRED = 'paired'


@dataclasses.dataclass
class Participant:
    """A live connection looking for an opponent."""

    id: str
    region: str
    # Means to send events to the participant, opaque to matchmaking.
    channel: Any = dataclasses.field(default=None, compare=False, repr=False)


@dataclasses.dataclass(frozen=True)
class MatchOutcome:
    kind: str
    opponent: Optional[Participant] = None
    battle: Optional[Battle] = None


class MatchmakingQueue:
    def __init__(self):
        self.waiting: Optional[Participant] = None

    def find_match(self, participant: Participant) -> MatchOutcome:
        """Puts `participant` in the slot, or pairs it with the one waiting.

        A second request from the participant already waiting changes
        nothing.
        """
        if self.waiting is None:
            self.waiting = participant
            logging.info(
                'participant %s (%s) is waiting for a match',
                participant.id,
                participant.region,
            )
            return MatchOutcome(kind=WAITING)

        if self.waiting.id == participant.id:
            logging.debug('duplicate match request from %s', participant.id)
            return MatchOutcome(kind=DUPLICATE)

        opponent, self.waiting = self.waiting, None
        battle = create_battle(opponent, participant)
        logging.info(
            'paired %s with %s in %s', opponent.id, participant.id, battle.id
        )
        return MatchOutcome(kind=PAIRED, opponent=opponent, battle=battle)

    def abandon(self, participant_id: str) -> bool:
        """Empties the slot if `participant_id` is the one waiting."""
        if self.waiting is None or self.waiting.id != participant_id:
            return False
        logging.info('participant %s left the matchmaking', participant_id)
        self.waiting = None
        return True

    def clear(self) -> None:
        self.waiting = None

    def __repr__(self):
        waiting = self.waiting.id if self.waiting else None
        return f'<MatchmakingQueue waiting={waiting!r}>'
