# SPDX-License-Identifier: GPL-2.0-or-later
"""RoastArena: server-authoritative matchmaking and battle state for roast
battles, where two players take turns hitting each other with generated
jokes.
"""
