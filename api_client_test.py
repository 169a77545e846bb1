"""
PokéAPI client tests against an in-memory session (no network).
"""
import random
import threading

import pytest
import requests

from core.api_client import PokeAPIClient
from core.cache_manager import CacheManager
from core.exceptions import DataUnavailable

BASE = "https://poke.test/api/v2"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"", headers=None):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.headers = headers or {}

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.requested = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        return route

    def close(self):
        self.closed = True


def creature(name, official=None, front=None):
    return FakeResponse(payload={
        "name": name,
        "sprites": {
            "front_default": front,
            "other": {"official-artwork": {"front_default": official}},
        },
    })


def creature_routes(count):
    return {
        f"{BASE}/pokemon/{i}": creature(f"mon-{i}", official=f"https://art.test/{i}.png")
        for i in range(1, count + 1)
    }


def test_fetch_creature_prefers_official_artwork():
    session = FakeSession({
        f"{BASE}/pokemon/1": creature("bulbasaur", official="https://art.test/1.png", front="https://spr.test/1.png"),
        f"{BASE}/pokemon/2": creature("ivysaur", front="https://spr.test/2.png"),
        f"{BASE}/pokemon/3": creature("venusaur"),
    })
    client = PokeAPIClient(BASE, session=session)

    assert client.fetch_creature(1).face_image_ref == "https://art.test/1.png"
    assert client.fetch_creature(2).face_image_ref == "https://spr.test/2.png"
    assert client.fetch_creature(3).face_image_ref == ""
    assert client.fetch_creature(3).display_name == "venusaur"


def test_fetch_card_templates_uses_distinct_creatures():
    session = FakeSession(creature_routes(20))
    client = PokeAPIClient(BASE, session=session, max_creature_id=20, rng=random.Random(3), max_workers=4)

    templates = client.fetch_card_templates(8)

    assert len(templates) == 8
    assert len({t.display_name for t in templates}) == 8
    assert len(set(session.requested)) == 8


def test_more_cards_than_creatures_fails():
    client = PokeAPIClient(BASE, session=FakeSession({}), max_creature_id=5)
    with pytest.raises(DataUnavailable):
        client.fetch_card_templates(6)


@pytest.mark.parametrize("route", [
    requests.ConnectionError("offline"),
    FakeResponse(500),
    FakeResponse(payload=ValueError("not json")),
    FakeResponse(payload=["not", "a", "dict"]),
    FakeResponse(payload={"sprites": {}}),
])
def test_failures_map_to_data_unavailable(route):
    client = PokeAPIClient(BASE, session=FakeSession({f"{BASE}/pokemon/1": route}))
    with pytest.raises(DataUnavailable):
        client.fetch_creature(1)


def test_one_failed_creature_fails_the_batch():
    routes = creature_routes(12)
    routes[f"{BASE}/pokemon/4"] = FakeResponse(503)
    client = PokeAPIClient(BASE, session=FakeSession(routes), max_creature_id=12)
    with pytest.raises(DataUnavailable):
        client.fetch_card_templates(12)


def test_fetch_back_image():
    session = FakeSession({
        f"{BASE}/item-category/34/": FakeResponse(payload={"items": [{"url": f"{BASE}/item/4/"}]}),
        f"{BASE}/item/4/": FakeResponse(payload={"name": "poke-ball", "sprites": {"default": "https://spr.test/ball.png"}}),
    })
    client = PokeAPIClient(BASE, session=session)
    assert client.fetch_back_image() == "https://spr.test/ball.png"


def test_back_image_missing_items_fails():
    session = FakeSession({f"{BASE}/item-category/34/": FakeResponse(payload={"items": []})})
    with pytest.raises(DataUnavailable):
        PokeAPIClient(BASE, session=session).fetch_back_image()


def test_artwork_is_cached_locally(tmp_path):
    session = FakeSession({
        f"{BASE}/pokemon/25": creature("pikachu", official="https://art.test/25.png"),
        "https://art.test/25.png": FakeResponse(content=b"\x89PNG", headers={"content-type": "image/png"}),
    })
    cache = CacheManager(tmp_path)
    client = PokeAPIClient(BASE, session=session, cache_manager=cache)

    template = client.fetch_creature(25)
    assert template.face_image_ref == str(tmp_path / "art" / "pokemon-25.png")
    assert (tmp_path / "art" / "pokemon-25.png").read_bytes() == b"\x89PNG"

    client.fetch_creature(25)
    assert session.requested.count("https://art.test/25.png") == 1


def test_failed_art_download_falls_back_to_url(tmp_path):
    session = FakeSession({
        f"{BASE}/pokemon/25": creature("pikachu", official="https://art.test/25.png"),
        "https://art.test/25.png": FakeResponse(404),
    })
    client = PokeAPIClient(BASE, session=session, cache_manager=CacheManager(tmp_path))
    assert client.fetch_creature(25).face_image_ref == "https://art.test/25.png"


def test_close_closes_session():
    session = FakeSession({})
    PokeAPIClient(BASE, session=session).close()
    assert session.closed


class ThreadRecordingSession(FakeSession):
    def __init__(self, routes):
        super().__init__(routes)
        self.threads = set()

    def get(self, url, timeout=None):
        self.threads.add(threading.get_ident())
        return super().get(url, timeout=timeout)


def test_each_fetch_worker_uses_its_own_session(monkeypatch):
    created = []

    def make_session():
        session = ThreadRecordingSession(creature_routes(20))
        created.append(session)
        return session

    monkeypatch.setattr(requests, "Session", make_session)
    client = PokeAPIClient(BASE, max_creature_id=20, rng=random.Random(5), max_workers=4)

    templates = client.fetch_card_templates(8)

    assert len(templates) == 8
    assert 1 <= len(created) <= 4
    assert sum(len(session.requested) for session in created) == 8
    assert all(len(session.threads) == 1 for session in created)
    # worker threads are gone, so their sessions are closed
    assert all(session.closed for session in created)


def test_close_closes_own_sessions(monkeypatch):
    created = []

    def make_session():
        session = FakeSession({f"{BASE}/pokemon/1": creature("bulbasaur", official="https://art.test/1.png")})
        created.append(session)
        return session

    monkeypatch.setattr(requests, "Session", make_session)
    client = PokeAPIClient(BASE)
    client.fetch_creature(1)

    assert len(created) == 1
    assert not created[0].closed
    client.close()
    assert created[0].closed
