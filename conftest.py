"""Shared fixtures: fake card provider, fast timings and an async polling helper."""
import asyncio
import threading
from typing import Callable, List, Optional

import pytest

from core.api_client import CardAssetProvider
from core.data_models import CardTemplate, GameTimings, Round
from core.exceptions import DataUnavailable


class FakeProvider(CardAssetProvider):
    """In-memory provider; optionally blocks, fails or returns too few templates."""

    def __init__(self, fail: bool = False, short_by: int = 0, error: Optional[Exception] = None) -> None:
        self.fail = fail
        self.short_by = short_by
        self.error = error
        self.gate: Optional[threading.Event] = None
        self.template_calls = 0
        self.closed = False

    def fetch_card_templates(self, count: int) -> List[CardTemplate]:
        self.template_calls += 1
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        if self.fail:
            raise DataUnavailable("provider offline")
        return [
            CardTemplate(display_name=f"mon-{i}", face_image_ref=f"https://img.test/{i}.png")
            for i in range(count - self.short_by)
        ]

    def fetch_back_image(self) -> str:
        return "https://img.test/back.png"

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def timings() -> GameTimings:
    return GameTimings(mismatch_delay=0.02, reveal_seconds=0.05, cooldown_seconds=3, tick_seconds=0.01)


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0, step: float = 0.002) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(step)
    return True


@pytest.fixture
def wait_for():
    return _wait_for


def cards_of_pair(round_obj: Round, pair_id: int) -> List[str]:
    return [card.card_id for card in round_obj.cards if card.pair_id == pair_id]


@pytest.fixture
def pair_of():
    return cards_of_pair
