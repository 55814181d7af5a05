# SPDX-License-Identifier: GPL-2.0-or-later
from prometheus_client import start_http_server, Counter, Gauge, Summary

arenad_connections = Gauge(
    'arenad_connections',
    'Number of open player connections',
)

arenad_waiting_participants = Gauge(
    'arenad_waiting_participants',
    'Number of participants waiting for a match (0 or 1)',
)

arenad_active_battles = Gauge(
    'arenad_active_battles',
    'Number of battles in the registry',
)

arenad_matches_total = Counter(
    'arenad_matches_total',
    'Number of battles created by matchmaking',
)

arenad_attacks_total = Counter(
    'arenad_attacks_total',
    'Number of attacks applied to battles',
    ['critical'],
)

arenad_finished_battles_total = Counter(
    'arenad_finished_battles_total',
    'Number of battles that reached a winner',
)

arenad_ignored_events_total = Counter(
    'arenad_ignored_events_total',
    'Number of inbound events dropped without effect',
    ['reason'],
)

arenad_generate_latency_seconds = Summary(
    'arenad_generate_latency_seconds',
    'Latency of proxied joke generations',
)

arenad_generate_failures_total = Counter(
    'arenad_generate_failures_total',
    'Number of proxied joke generations that failed',
)


def monitoring_start(port=9060):
    start_http_server(port)
