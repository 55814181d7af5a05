# SPDX-License-Identifier: GPL-2.0-or-later
"""Binds inbound player events to matchmaking and battles, and broadcasts the
resulting state to the players of each battle.

Event handlers are plain functions: each one reads and mutates state, then
queues its outbound events, without ever yielding to the event loop. Events
are thus applied one at a time, in arrival order, across all battles.

A connection is any object with an ``id`` attribute and a non-blocking
``send(event, data)`` method.
"""

import collections
import inspect
import json
import logging
from typing import DefaultDict, Dict, Set

from roastarena.arena import damage
from roastarena.arena.battle import apply_attack, is_player_turn
from roastarena.arena.matchmaking import (
    DUPLICATE,
    PAIRED,
    WAITING,
    MatchmakingQueue,
    Participant,
)
from roastarena.arena.registry import BattleRegistry
from roastarena.arenad.monitoring import (
    arenad_attacks_total,
    arenad_finished_battles_total,
    arenad_ignored_events_total,
    arenad_matches_total,
)

WAITING_FOR_MATCH = 'waiting_for_match'
MATCH_FOUND = 'match_found'
BATTLE_UPDATE = 'battle_update'
BATTLE_FINISHED = 'battle_finished'


def event_handler(*names):
    """Decorator for methods handling the inbound events `names`."""

    def decorator(func):
        func.event_names = names
        return func

    return decorator


def is_event_handler(obj):
    return callable(obj) and bool(getattr(obj, "event_names", ()))


class EventCollection(type):
    """Metaclass for event layers: collect event handlers and store them in a
    class-wide EVENT_HANDLERS dictionnary, indexed by event name. Stored
    methods are not bound to an instance.
    """

    def __init__(cls, name, bases, dct):
        super(EventCollection, cls).__init__(name, bases, dct)

        handlers = {}
        for base in bases:
            handlers.update(getattr(base, "EVENT_HANDLERS", {}))
        for obj in dct.values():
            if is_event_handler(obj):
                if inspect.iscoroutinefunction(obj):
                    raise RuntimeError(
                        f"Event handler {obj} must not be a coroutine."
                    )
                for event_name in obj.event_names:
                    handlers[event_name] = obj
        cls.EVENT_HANDLERS = handlers


def ignore(reason, fmt, *args):
    arenad_ignored_events_total.labels(reason).inc()
    logging.debug('ignored event (%s): ' + fmt, reason, *args)


class ArenaEvents(metaclass=EventCollection):
    """Connection event layer of the arena.

    The matchmaking queue and the battle registry are owned by the caller and
    only mutated from here.
    """

    def __init__(
        self,
        queue: MatchmakingQueue,
        registry: BattleRegistry,
        rng=None,
        rules: damage.DamageRules = damage.DEFAULT_RULES,
    ):
        self.queue = queue
        self.registry = registry
        self.rng = rng
        self.rules = rules
        self.connections: Dict[str, object] = {}
        # Broadcast groups: battle id -> connections of its players
        self.groups: DefaultDict[str, Set] = collections.defaultdict(set)

    def connect(self, connection) -> None:
        self.connections[connection.id] = connection
        logging.info('player connected: %s', connection.id)

    def disconnect(self, connection) -> None:
        """Forgets `connection`. Its battles stay open: the opponent will just
        never see it attack again.
        """
        logging.info('player disconnected: %s', connection.id)
        self.connections.pop(connection.id, None)
        self.queue.abandon(connection.id)
        for battle_id in list(self.groups):
            group = self.groups[battle_id]
            group.discard(connection)
            if not group:
                del self.groups[battle_id]

    def dispatch(self, connection, raw: str) -> None:
        """Decodes a ``{"event": ..., "data": ...}`` JSON frame and runs the
        matching handler. Malformed frames are dropped.
        """
        try:
            message = json.loads(raw)
        except (ValueError, RecursionError):
            # RecursionError: nesting too deep for the decoder
            ignore('malformed', 'undecodable frame from %s', connection.id)
            return
        if not isinstance(message, dict):
            ignore('malformed', 'non-object frame from %s', connection.id)
            return

        name = message.get('event')
        handler = self.EVENT_HANDLERS.get(name)
        if handler is None:
            ignore('unknown_event', '%r from %s', name, connection.id)
            return

        try:
            handler(self, connection, message.get('data'))
        except Exception:
            logging.exception(
                'handling %s from %s raised:', name, connection.id
            )

    def subscribe(self, battle_id: str, connection) -> None:
        self.groups[battle_id].add(connection)

    def broadcast(self, battle_id: str, event: str, data) -> None:
        for connection in list(self.groups.get(battle_id, ())):
            connection.send(event, data)

    def retire(self, battle_id: str) -> None:
        self.registry.remove(battle_id)
        self.groups.pop(battle_id, None)

    @event_handler('find_match')
    def find_match(self, connection, region):
        if not isinstance(region, str):
            ignore('malformed', 'find_match without region')
            return

        outcome = self.queue.find_match(
            Participant(id=connection.id, region=region, channel=connection)
        )
        if outcome.kind == WAITING:
            connection.send(WAITING_FOR_MATCH, None)
        elif outcome.kind == DUPLICATE:
            ignore('duplicate', 'find_match from %s', connection.id)
        elif outcome.kind == PAIRED:
            battle = outcome.battle
            self.registry.add(battle)
            self.subscribe(battle.id, outcome.opponent.channel)
            self.subscribe(battle.id, connection)
            arenad_matches_total.inc()
            self.broadcast(battle.id, MATCH_FOUND, battle.to_dict())

    @event_handler('attack', 'joke_generated')
    def attack(self, connection, data):
        if not isinstance(data, dict):
            ignore('malformed', 'attack without payload')
            return
        battle_id = data.get('battleId')
        # 'joke' is the payload key of the joke_generated alias
        text = data.get('text', data.get('joke'))
        if not isinstance(battle_id, str) or not isinstance(text, str):
            ignore('malformed', 'attack payload %r', data)
            return

        battle = self.registry.get(battle_id)
        if battle is None:
            ignore('unknown_battle', '%s', battle_id)
            return
        if not battle.is_member(connection.id):
            ignore('not_member', '%s in %s', connection.id, battle_id)
            return
        if not is_player_turn(battle, connection.id):
            ignore('out_of_turn', '%s in %s', connection.id, battle_id)
            return

        outcome = apply_attack(
            battle, connection.id, text, rng=self.rng, rules=self.rules
        )
        arenad_attacks_total.labels(str(outcome.is_critical).lower()).inc()
        logging.info(
            '%s: %s hit for %d%s',
            battle.id,
            connection.id,
            outcome.damage,
            ' (critical)' if outcome.is_critical else '',
        )

        self.broadcast(
            battle.id,
            BATTLE_UPDATE,
            {
                'battle': battle.to_dict(),
                'lastAttackText': text,
                'attackerId': connection.id,
                'damage': outcome.damage,
                'isCritical': outcome.is_critical,
            },
        )

        if outcome.finished:
            self.broadcast(
                battle.id, BATTLE_FINISHED, {'winnerId': outcome.winner_id}
            )
            arenad_finished_battles_total.inc()
            self.retire(battle.id)
