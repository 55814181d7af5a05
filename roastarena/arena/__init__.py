# SPDX-License-Identifier: GPL-2.0-or-later
"""Battle engine shared by networked and local battles.

* :mod:`~roastarena.arena.damage` turns the text of an attack into damage.
* :mod:`~roastarena.arena.battle` holds the battle entity and applies
  attacks to it.
* :mod:`~roastarena.arena.matchmaking` pairs participants two by two.
* :mod:`~roastarena.arena.registry` maps battle ids to live battles.
* :mod:`~roastarena.arena.solo` runs battles against a scripted opponent.

Nothing here does any I/O besides logging; the network side lives in
:mod:`roastarena.arenad`.
"""
