# SPDX-License-Identifier: GPL-2.0-or-later
"""Arenad is the service holding the state of every networked roast battle.

Players connect to ``/ws`` with a WebSocket and exchange JSON frames of the
form ``{"event": <name>, "data": <payload>}``:

* ``find_match`` (region) puts the player in the matchmaking slot, or pairs
  them with the player already waiting. The waiting player gets
  ``waiting_for_match``; both paired players get ``match_found`` with the
  new battle, and the one who waited plays first.
* ``attack`` (``{battleId, text}``) hits the opponent with a joke when it is
  the sender's turn. Both players get ``battle_update``, then
  ``battle_finished`` (``{winnerId}``) when the hit is lethal.

Events that cannot apply (unknown battle, out of turn, malformed frame...)
are dropped silently. A player leaving in the middle of a battle leaves it
stalled: battles are never resolved on disconnection.

``POST /api/generate`` streams a joke from the text generation service, for
clients that do not talk to it directly.

Arenad configuration elements (``arenad`` profile) are:

* **arenad.port** the TCP port to listen on (3001 by default).
* **arenad.heartbeat_secs** the WebSocket ping interval.
* **damage** the damage rules: ``min``, ``range``, ``crit_multiplier``,
  ``crit_chance``, ``crit_keywords``.
* **jokegen** the text generation service: ``endpoint``, ``model``,
  ``timeout_secs``.
* **monitoring.port** the port of the Prometheus exporter.
"""
