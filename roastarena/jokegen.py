# SPDX-License-Identifier: GPL-2.0-or-later
"""Client for the text generation service writing the jokes used as attacks.

The service is an Ollama-compatible ``/api/generate`` endpoint streaming
NDJSON objects; each object carries a ``response`` fragment of the joke and
the last one has ``done`` set.

Battle state never depends on this module: a joke is an opaque string once
assembled.
"""

import asyncio
import contextlib
import json
import logging
import random
from typing import AsyncIterator, Callable, Optional, Tuple
from urllib.parse import urljoin

import aiohttp

DEFAULT_ATTACKER = 'The Internet'

SYSTEM_PROMPT = (
    'You write "Yo Mama" jokes for a comedy game. "Yo Mama" always refers to '
    'the mother of the person being ROASTED (the target). Reply with one joke '
    'and nothing else, no intro, no commentary.'
)

PROMPT_TEMPLATE = """{attacker} is roasting {region}. Write one "Yo mama so \
{region}..." joke that mocks {region}'s culture or stereotypes. Keep it under \
2 sentences.

Style examples:
- "Yo mama so Norwegian, she put salmon in the dishwasher and called it meal \
prep."
- "Yo mama so German, she alphabetised the bins and fined the neighbours for \
breathing wrong."
- "Yo mama so French, she went on strike because the baguette was 3mm too \
short."

One original joke about {region} only:"""

# Refusals are only matched at the start of an answer, or with phrases that
# cannot appear in a joke.
REFUSAL_STARTS = (
    "i'm sorry, but i can't",
    "i am sorry, but i can't",
    "i'm sorry, i can't",
    "sorry, i can't help with that",
    "i can't help with that",
    "i cannot help with that",
    "i can't assist with that",
    "i cannot assist with that",
    "i'm not able to help",
    "i am not able to help",
    "i won't be able to",
    "i will not help",
    "i don't feel comfortable",
    "as an ai language model",
    "as an ai, i",
)

REFUSAL_ANYWHERE = (
    "against my guidelines",
    "violates my",
    "not able to fulfill",
    "cannot fulfill this",
)

MIN_JOKE_LENGTH = 10


class JokeGenError(Exception):
    """Base class for all exceptions here."""

    pass


class GenerationError(JokeGenError):
    """Raised when the text generation service fails or times out."""

    pass


def is_refusal(text: str) -> bool:
    """Returns whether `text` is the model refusing to write the joke."""
    lower = text.lower().strip()
    if lower.startswith(REFUSAL_STARTS):
        return True
    if any(phrase in lower for phrase in REFUSAL_ANYWHERE):
        return True
    # Short one-liners that are clearly refusals
    return len(lower) < 60 and (
        "can't help" in lower or "cannot help" in lower
    )


def is_usable(text: str) -> bool:
    return not is_refusal(text) and len(text.strip()) > MIN_JOKE_LENGTH


def build_prompt(
    region: str, attacker_region: Optional[str] = None
) -> Tuple[str, str]:
    """Returns the (system, prompt) couple asking for a joke on `region`."""
    prompt = PROMPT_TEMPLATE.format(
        attacker=attacker_region or DEFAULT_ATTACKER, region=region
    )
    return SYSTEM_PROMPT, prompt


class JokeClient:
    """Streams jokes from the text generation service."""

    def __init__(self, endpoint, model, http_client=None, timeout=120):
        self._endpoint = endpoint
        self._model = model
        self._timeout = timeout
        # For testing, we have to use an existing client.
        self._http_client = http_client

    @classmethod
    def from_config(kls, cfg) -> 'JokeClient':
        """Returns a client from the ``jokegen`` configuration section."""
        return kls(
            cfg.get('endpoint', 'http://localhost:11434'),
            cfg.get('model', 'gpt-oss'),
            timeout=cfg.get('timeout_secs', 120),
        )

    @contextlib.asynccontextmanager
    async def _client(self):
        if self._http_client is not None:
            # The lifecycle of existing clients is handled externally.
            yield self._http_client
            return

        async with aiohttp.ClientSession() as client:
            yield client

    def _request_body(self, region, attacker_region, seed):
        system, prompt = build_prompt(region, attacker_region)
        if seed is None:
            seed = random.randrange(1_000_000)
        return {
            'model': self._model,
            'system': system,
            'prompt': prompt,
            'stream': True,
            'options': {'temperature': 1.0, 'top_p': 0.95, 'seed': seed},
        }

    async def stream(
        self,
        region: str,
        attacker_region: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """Yields the fragments of one joke about `region`.

        Raises GenerationError if the service cannot be reached, answers with
        an error status or takes longer than the configured timeout.
        """
        url = urljoin(self._endpoint, 'api/generate')
        body = self._request_body(region, attacker_region, seed)
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with self._client() as client:
                async with client.post(url, json=body, timeout=timeout) as r:
                    if r.status != 200:
                        raise GenerationError(
                            f"text generation failed: HTTP {r.status} "
                            f"{r.reason}"
                        )
                    async for line in r.content:
                        if not line.strip():
                            continue
                        try:
                            data = json.loads(line)
                        except ValueError:
                            logging.error(
                                'undecodable generation chunk: %r', line[:80]
                            )
                            continue
                        if data.get('response'):
                            yield data['response']
                        if data.get('done'):
                            return
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GenerationError(
                f"text generation failed: {type(e).__name__}: {e}"
            ) from e

    async def generate(
        self,
        region: str,
        attacker_region: Optional[str] = None,
        seed: Optional[int] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> str:
        """Returns one full joke about `region`.

        `on_chunk`, if given, is called with the partial joke after each
        received fragment.
        """
        text = ''
        async for fragment in self.stream(region, attacker_region, seed):
            text += fragment
            if on_chunk is not None:
                on_chunk(text)
        return text


async def generate_attack(
    client: JokeClient,
    region: str,
    attacker_region: Optional[str] = None,
    attempts: int = 3,
    on_chunk: Optional[Callable[[str], None]] = None,
) -> str:
    """Returns a usable joke, asking again after refusals, too short answers
    and service errors. Raises GenerationError after `attempts` failures.
    """
    for attempt in range(1, attempts + 1):
        try:
            text = await client.generate(
                region, attacker_region, on_chunk=on_chunk
            )
        except GenerationError as e:
            logging.warning(
                'joke generation attempt %d/%d failed: %s',
                attempt,
                attempts,
                e,
            )
            continue
        if is_usable(text):
            return text.strip()
        logging.info(
            'joke generation attempt %d/%d unusable: %r',
            attempt,
            attempts,
            text[:40],
        )
    raise GenerationError(f"no usable joke about {region!r}")
