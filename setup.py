#! /usr/bin/env python
# SPDX-License-Identifier: GPL-2.0-or-later

from setuptools import setup, find_packages

setup(
    name='RoastArena',
    version='1.0',
    description='Matchmaking and battle-state server for roast battles',
    packages=find_packages(include=['roastarena', 'roastarena.*']),
    python_requires='>=3.8',
    install_requires=[
        'aiohttp>=3.8',
        'prometheus_client',
        'PyYAML',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-aiohttp>=1.0',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
    zip_safe=False,
)
