# SPDX-License-Identifier: GPL-2.0-or-later
"""Damage resolution: turns the text of an attack into an amount of damage.

The base damage is drawn uniformly in ``[min_damage, min_damage +
damage_range - 1]``. A hit is critical when the text contains one of the
``crit_keywords`` (case-insensitive substring match) or when an independent
roll succeeds with probability ``crit_chance``. Critical hits deal
``floor(base * crit_multiplier)``.

The entropy provider is anything with the ``randrange`` and ``random``
methods of :class:`random.Random`. Both draws always happen, in that order,
so a seeded provider gives reproducible results whatever the text.
"""

import dataclasses
import math
import random
from typing import Mapping, Optional, Sequence

DEFAULT_CRIT_KEYWORDS = (
    'fat',
    'ugly',
    'stupid',
    'old',
    'poor',
    'nasty',
    'dumb',
    'smell',
)


@dataclasses.dataclass(frozen=True)
class DamageRules:
    """Game balance constants of damage resolution."""

    min_damage: int = 10
    damage_range: int = 20
    crit_multiplier: float = 1.5
    crit_chance: float = 0.1
    crit_keywords: Sequence[str] = DEFAULT_CRIT_KEYWORDS

    def __post_init__(self):
        if self.damage_range < 1:
            raise ValueError("damage_range must be at least 1")
        if self.min_damage < 0:
            raise ValueError("min_damage cannot be negative")
        if self.crit_multiplier < 0:
            raise ValueError("crit_multiplier cannot be negative")
        if not 0 <= self.crit_chance <= 1:
            raise ValueError("crit_chance must be between 0 and 1")
        if isinstance(self.crit_keywords, str):
            raise ValueError("crit_keywords must be a list of keywords")
        object.__setattr__(
            self,
            'crit_keywords',
            tuple(kw.lower() for kw in self.crit_keywords),
        )

    @classmethod
    def from_config(kls, cfg: Optional[Mapping]) -> 'DamageRules':
        """Returns rules from the ``damage`` configuration section. Missing
        keys keep their default value."""
        cfg = cfg or {}
        fields = {
            'min_damage': cfg.get('min'),
            'damage_range': cfg.get('range'),
            'crit_multiplier': cfg.get('crit_multiplier'),
            'crit_chance': cfg.get('crit_chance'),
            'crit_keywords': cfg.get('crit_keywords'),
        }
        return kls(**{k: v for k, v in fields.items() if v is not None})

    @property
    def max_damage(self) -> int:
        """Highest base damage."""
        return self.min_damage + self.damage_range - 1

    @property
    def max_critical_damage(self) -> int:
        return math.floor(self.max_damage * self.crit_multiplier)

    def has_crit_keyword(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.crit_keywords)


DEFAULT_RULES = DamageRules()


@dataclasses.dataclass(frozen=True)
class DamageResult:
    damage: int
    is_critical: bool


def resolve(text: str, rng=None, rules: DamageRules = DEFAULT_RULES):
    """Returns the DamageResult of an attack with `text`."""
    if rng is None:
        rng = random
    base = rules.min_damage + rng.randrange(rules.damage_range)
    lucky = rng.random() < rules.crit_chance
    is_critical = rules.has_crit_keyword(text) or lucky
    if is_critical:
        damage = math.floor(base * rules.crit_multiplier)
    else:
        damage = base
    return DamageResult(damage=damage, is_critical=is_critical)
