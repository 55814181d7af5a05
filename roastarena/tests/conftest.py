import json

import aiohttp.web
import pytest

import roastarena.config
from roastarena.arena.battle import Battle, Player


class FixedRandom:
    """Entropy provider returning the same draws every time.

    `offset` is what randrange() returns, `roll` what random() returns.
    """

    def __init__(self, offset=0, roll=0.99):
        self.offset = offset
        self.roll = roll

    def randrange(self, n):
        assert 0 <= self.offset < n
        return self.offset

    def random(self):
        return self.roll


class FakeConnection:
    """Connection collecting the events sent to it."""

    def __init__(self, id):
        self.id = id
        self.sent = []

    def send(self, event, data):
        # Serialize like the real connection does, so sent payloads are
        # snapshots.
        message = json.dumps({'event': event, 'data': data})
        self.sent.append(json.loads(message))

    def events(self):
        return [m['event'] for m in self.sent]

    def last(self, event):
        for message in reversed(self.sent):
            if message['event'] == event:
                return message['data']
        raise AssertionError(f"{self.id} never received {event}")

    def __repr__(self):
        return f'<FakeConnection {self.id}>'


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture
def battle():
    return Battle(
        id='battle_x_y',
        players=[
            Player(id='x', region='France'),
            Player(id='y', region='Germany'),
        ],
        turn='x',
    )


@pytest.fixture
def arenaconf(mocker):
    """Mocks :func:`roastarena.config.load` for a given profile.

    Usage to override the "arenad" profile with one "arenad" section::

        @pytest.fixture
        def myconf(arenaconf):
            arenaconf("arenad", arenad={"port": 4242})

        def test_something(myconf):
            ...
    """
    config_registry = {}

    def mocked_loader(profile):
        try:
            return config_registry[profile]
        except KeyError:
            raise KeyError(
                f"Application loads config profile '{profile}', which is not "
                f"configured in arenaconf fixture."
            ) from None

    def configure_func(profile, **kwargs):
        config_registry[profile] = kwargs

    config_load = mocker.patch("roastarena.config.load")
    config_load.side_effect = mocked_loader
    yield configure_func
    config_load.stop()


@pytest.fixture(autouse=True)
def empty_config_cache(monkeypatch):
    monkeypatch.setattr(roastarena.config, 'LOADED_CONFIGS', {})


def ndjson_chunks(fragments):
    lines = [{'response': f, 'done': False} for f in fragments]
    lines.append({'response': '', 'done': True})
    return [json.dumps(line).encode() + b'\n' for line in lines]


@pytest.fixture
def fake_ollama():
    """Returns (app, requests, replies): an aiohttp app mimicking the text
    generation service. Each request pops the next reply, which is either a
    list of fragments or an HTTP status code.
    """
    requests = []
    replies = []

    async def generate(request):
        requests.append(await request.json())
        reply = replies.pop(0)
        if isinstance(reply, int):
            return aiohttp.web.Response(status=reply, text='upstream broken')
        response = aiohttp.web.StreamResponse(
            headers={'Content-Type': 'application/x-ndjson'}
        )
        await response.prepare(request)
        for chunk in ndjson_chunks(reply):
            await response.write(chunk)
        await response.write_eof()
        return response

    app = aiohttp.web.Application()
    app.router.add_post('/api/generate', generate)
    return app, requests, replies


@pytest.fixture
async def ollama_client(aiohttp_client, fake_ollama):
    app, _, _ = fake_ollama
    return await aiohttp_client(app)
