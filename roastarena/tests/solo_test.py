import pytest

from roastarena import jokegen
from roastarena.arena.damage import DamageRules
from roastarena.arena.solo import (
    BOSS_ID,
    PLAYER_ID,
    SoloDuel,
    create_solo_battle,
)


def test_solo_battle():
    battle = create_solo_battle('Spain', 'Portugal')
    assert battle.id == 'local'
    assert battle.turn == PLAYER_ID
    assert battle.player(BOSS_ID).is_boss
    assert not battle.player(PLAYER_ID).is_boss
    assert battle.to_dict()['players'][1] == {
        'id': 'boss',
        'region': 'Portugal',
        'hp': 100,
        'isBoss': True,
    }


def test_player_attack(fixed_random):
    duel = SoloDuel('Spain', 'Portugal', rng=fixed_random(offset=5))
    outcome = duel.attack('yo mama so poor')
    assert outcome.is_critical
    assert outcome.damage == 22
    assert duel.boss.hp == 78
    assert duel.battle.turn == BOSS_ID

    # The boss plays next
    assert duel.attack('yo mama') is None
    assert duel.boss.hp == 78


async def test_boss_turn(fixed_random, ollama_client, fake_ollama):
    _, requests, replies = fake_ollama
    replies.append(['Yo mama so Spanish, ', 'she naps between naps.'])
    client = jokegen.JokeClient('/', 'test', http_client=ollama_client)
    duel = SoloDuel('Spain', 'Portugal', joke_client=client,
                    rng=fixed_random(offset=0))

    assert await duel.boss_turn() is None
    assert requests == []

    duel.attack('yo mama')
    outcome = await duel.boss_turn()
    assert outcome.damage == 10
    assert duel.player.hp == 90
    assert duel.battle.turn == PLAYER_ID
    assert 'Portugal is roasting Spain.' in requests[0]['prompt']


async def test_boss_generation_failure_keeps_state(fixed_random, ollama_client,
                                                   fake_ollama):
    _, _, replies = fake_ollama
    replies.extend([500, 500, 500])
    client = jokegen.JokeClient('/', 'test', http_client=ollama_client)
    duel = SoloDuel('Spain', 'Portugal', joke_client=client,
                    rng=fixed_random())
    duel.attack('yo mama')
    before = duel.battle.to_dict()

    with pytest.raises(jokegen.GenerationError):
        await duel.boss_turn()
    assert duel.battle.to_dict() == before


async def test_boss_without_generator(fixed_random):
    duel = SoloDuel('Spain', 'Portugal', rng=fixed_random())
    duel.attack('yo mama')
    with pytest.raises(jokegen.GenerationError):
        await duel.boss_turn()


def test_player_wins(fixed_random):
    duel = SoloDuel('Spain', 'Portugal', rng=fixed_random(),
                    rules=DamageRules(min_damage=100, damage_range=1))
    assert duel.winner_id is None
    outcome = duel.attack('yo mama')
    assert outcome.finished
    assert outcome.winner_id == PLAYER_ID
    assert duel.winner_id == PLAYER_ID
    assert duel.battle.turn is None
