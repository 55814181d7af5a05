# SPDX-License-Identifier: GPL-2.0-or-later
"""Arena server: WebSocket transport of the arena events, and proxy to the
text generation service.
"""

import asyncio
import json
import logging
import uuid

import aiohttp
import aiohttp.web

import roastarena.config
import roastarena.web
from roastarena import jokegen
from roastarena.arena import damage
from roastarena.arena.matchmaking import MatchmakingQueue
from roastarena.arena.registry import BattleRegistry
from roastarena.arenad.events import ArenaEvents
from roastarena.arenad.monitoring import (
    arenad_active_battles,
    arenad_connections,
    arenad_generate_failures_total,
    arenad_generate_latency_seconds,
    arenad_waiting_participants,
)


class WebSocketConnection:
    """One player connection. Outbound events are queued and written by a
    dedicated task, so sending never blocks event handling.
    """

    def __init__(self, ws):
        self.id = uuid.uuid4().hex
        self.ws = ws
        self.outbox = asyncio.Queue()

    def send(self, event, data):
        self.outbox.put_nowait(json.dumps({'event': event, 'data': data}))

    def close(self):
        self.outbox.put_nowait(None)

    async def writer_loop(self):
        while True:
            frame = await self.outbox.get()
            if frame is None or self.ws.closed:
                return
            try:
                await self.ws.send_str(frame)
            except ConnectionResetError:
                logging.debug('connection %s reset while sending', self.id)
                return

    def __repr__(self):
        return f'<WebSocketConnection {self.id}>'


class ArenaServer(roastarena.web.AiohttpApp):
    exposed_attributes = {'queue', 'registry', 'events'}

    def __init__(self, config=None, rng=None, joke_client=None, **kwargs):
        super().__init__(
            [
                ('GET', '/ws', self.websocket_handler),
                ('POST', '/api/generate', self.generate_handler),
            ],
            **kwargs,
        )
        self.config = config or {}
        self.arena_config = roastarena.config.section(self.config, 'arenad')
        rules = damage.DamageRules.from_config(
            roastarena.config.section(self.config, 'damage')
        )

        self.queue = MatchmakingQueue()
        self.registry = BattleRegistry()
        self.events = ArenaEvents(self.queue, self.registry, rng, rules)

        if joke_client is None:
            joke_client = jokegen.JokeClient.from_config(
                roastarena.config.section(self.config, 'jokegen')
            )
        self.joke_client = joke_client

        self._setup_monitoring()

    def _setup_monitoring(self) -> None:
        """Wires the monitoring probes."""
        arenad_connections.set_function(lambda: len(self.events.connections))
        arenad_waiting_participants.set_function(
            lambda: 0 if self.queue.waiting is None else 1
        )
        arenad_active_battles.set_function(lambda: len(self.registry))

    async def exposed_state(self):
        return {
            'waiting': self.queue.waiting,
            'battles': [b.to_dict() for b in self.registry],
            'connections': sorted(self.events.connections),
        }

    async def websocket_handler(self, request):
        ws = aiohttp.web.WebSocketResponse(
            heartbeat=self.arena_config.get('heartbeat_secs', 30)
        )
        await ws.prepare(request)

        connection = WebSocketConnection(ws)
        writer = asyncio.ensure_future(connection.writer_loop())
        self.events.connect(connection)
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.events.dispatch(connection, msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logging.warning(
                        'connection %s closed with exception %s',
                        connection.id,
                        ws.exception(),
                    )
        finally:
            self.events.disconnect(connection)
            connection.close()
            await writer
        return ws

    async def generate_handler(self, request):
        """Streams a joke about ``region`` written by the text generation
        service. Failures are reported to the requester only.
        """
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or not body.get('region'):
            return aiohttp.web.Response(status=400, text='Region is required')

        fragments = self.joke_client.stream(
            body['region'], body.get('attackerRegion'), body.get('seed')
        )
        response = None
        with arenad_generate_latency_seconds.time():
            try:
                async for fragment in fragments:
                    if response is None:
                        response = aiohttp.web.StreamResponse(
                            headers={
                                'Content-Type': 'text/plain; charset=utf-8',
                                'Cache-Control': 'no-cache',
                            }
                        )
                        await response.prepare(request)
                    await response.write(fragment.encode())
            except jokegen.GenerationError as e:
                arenad_generate_failures_total.inc()
                logging.error('joke generation failed: %s', e)
                if response is None:
                    return aiohttp.web.json_response(
                        {'error': 'Failed to generate joke'}, status=502
                    )
                # Headers are already sent, just cut the stream short.

        if response is None:
            return aiohttp.web.Response(
                text='', content_type='text/plain', charset='utf-8'
            )
        await response.write_eof()
        return response

    def run(self, **kwargs):
        port = self.arena_config.get('port', 3001)
        logging.info('arena listening on port %s', port)
        super().run(port=port, **kwargs)
