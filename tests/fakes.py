"""Scripted translation client and group builders shared by tests."""

from __future__ import annotations

import asyncio
import json
import re

from bisub.core.models import SubtitleGroup

_BATCH_JSON_RE = re.compile(r"Now process this input:\n(\[.*?\n\])", re.DOTALL)


def batch_from_prompt(prompt: str) -> list[dict]:
    """Recover the batch items embedded in a translation prompt."""
    match = _BATCH_JSON_RE.search(prompt)
    assert match, "prompt does not contain a batch"
    return json.loads(match.group(1))


def echo_response(prompt: str) -> str:
    """A well-formed answer that translates every text as ``zh:<text>``."""
    items = batch_from_prompt(prompt)
    return json.dumps(
        [
            {
                "startTime": item["startTime"],
                "endTime": item["endTime"],
                "correctedText": item["text"].capitalize(),
                "translation": f"zh:{item['text']}",
            }
            for item in items
        ],
        ensure_ascii=False,
    )


class FakeClient:
    """Scripted translation client.

    Each call pops the next entry from ``script``: a string is returned, an
    exception is raised, and ``None`` means "answer correctly". Once the
    script is used up every call answers correctly.
    """

    def __init__(self, script: list | None = None) -> None:
        self.script = list(script or [])
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def translate(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        step = self.script.pop(0) if self.script else None
        if isinstance(step, BaseException):
            raise step
        if step is None:
            return echo_response(prompt)
        return step


class GatedClient(FakeClient):
    """FakeClient whose calls block until ``release`` is set.

    ``entered`` is set as soon as a call is in flight.
    """

    def __init__(self, script: list | None = None) -> None:
        super().__init__(script)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def translate(self, prompt: str) -> str | None:
        self.entered.set()
        await self.release.wait()
        return await super().translate(prompt)


def make_groups(*texts: str, step_ms: int = 3000) -> list[SubtitleGroup]:
    return [
        SubtitleGroup(start_ms=i * step_ms, end_ms=i * step_ms + step_ms - 500, text=text)
        for i, text in enumerate(texts)
    ]
