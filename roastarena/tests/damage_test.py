import math
import random

import pytest

from roastarena.arena import damage
from roastarena.arena.damage import DamageRules, resolve


def test_plain_hit(fixed_random):
    result = resolve('yo mama so French', rng=fixed_random(offset=5))
    assert result == damage.DamageResult(damage=15, is_critical=False)


@pytest.mark.parametrize(
    'text',
    [
        'yo mama so fat she needs a passport for each cheek',
        'Yo mama so FAT',
        'yo mama so old her birth certificate is in Latin',
        'smelly',
    ],
)
def test_keyword_is_always_critical(fixed_random, text):
    for offset in (0, 7, 19):
        for roll in (0.0, 0.5, 0.999):
            result = resolve(text, rng=fixed_random(offset, roll))
            assert result.is_critical
            assert result.damage == math.floor((10 + offset) * 1.5)


def test_lucky_roll_is_critical(fixed_random):
    result = resolve('yo mama so French', rng=fixed_random(offset=5, roll=0.05))
    assert result == damage.DamageResult(damage=22, is_critical=True)


def test_roll_at_chance_is_not_critical(fixed_random):
    result = resolve('yo mama so French', rng=fixed_random(roll=0.1))
    assert not result.is_critical


def test_damage_bounds():
    rng = random.Random(1337)
    rules = damage.DEFAULT_RULES
    for i in range(2000):
        text = 'yo mama so fat' if i % 2 else 'yo mama'
        result = resolve(text, rng=rng)
        assert rules.min_damage <= result.damage <= rules.max_critical_damage
    assert rules.max_damage == 29
    assert rules.max_critical_damage == 43


def test_seeded_resolution_is_reproducible():
    texts = ['yo mama so French', 'yo mama so ugly', 'yo mama so Swiss'] * 10
    first = [resolve(t, rng=random.Random(42)) for t in texts]
    again = [resolve(t, rng=random.Random(42)) for t in texts]
    assert first == again


def test_rules_from_config():
    rules = DamageRules.from_config(
        {'min': 15, 'crit_multiplier': 2, 'crit_keywords': ['Cheap']}
    )
    assert rules.min_damage == 15
    assert rules.damage_range == 20
    assert rules.crit_multiplier == 2
    assert rules.crit_chance == 0.1
    assert rules.has_crit_keyword('yo mama so CHEAP')
    assert not rules.has_crit_keyword('yo mama so fat')


def test_rules_from_empty_config():
    assert DamageRules.from_config(None) == damage.DEFAULT_RULES


def test_invalid_rules():
    with pytest.raises(ValueError):
        DamageRules(damage_range=0)
    with pytest.raises(ValueError):
        DamageRules(min_damage=-1)


@pytest.mark.parametrize(
    'cfg',
    [
        {'crit_multiplier': -1},
        {'crit_chance': -0.1},
        {'crit_chance': 1.5},
        {'crit_keywords': 'fat'},
    ],
)
def test_invalid_rules_from_config(cfg):
    with pytest.raises(ValueError):
        DamageRules.from_config(cfg)
