"""Tests for the player control routes."""

import pytest
from fastapi.testclient import TestClient

from cadence.domain.library.exceptions import CatalogError
from cadence.domain.playback.session import PlaybackSession
from cadence.web.main import create_app

from conftest import S1, S2, S3, FakeCatalog, FakeDevice, RecordingNotifier

SONGS = [
    {"_id": "s1", "name": "Opening", "file": "https://cdn.example/s1.mp3", "duration": "3:20"},
    {"_id": "s2", "name": "Middle", "file": "https://cdn.example/s2.mp3", "duration": "4:05"},
]


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(tracks=[S1, S2, S3], albums={"a1": [S1, S2, S3]}, playlists={"p1": [S3, S1]})


@pytest.fixture
def messages() -> list:
    return []


@pytest.fixture
def session(device, catalog) -> PlaybackSession:
    return PlaybackSession(device, catalog, RecordingNotifier())


@pytest.fixture
def client(session, catalog, messages) -> TestClient:
    def drain():
        drained = messages[:]
        messages.clear()
        return drained

    return TestClient(create_app(session, catalog, drain_messages=drain))


class TestState:
    def test_initial_state(self, client: TestClient) -> None:
        response = client.get("/api/player/state")

        assert response.status_code == 200
        state = response.json()
        assert state["currentTrack"] is None
        assert state["queue"] == []
        assert state["queueDuration"] == "0 min"
        assert state["queueIndex"] is None
        assert state["status"] == "stopped"
        assert state["isPlaying"] is False
        assert state["volume"] == 0.7
        assert state["loopMode"] == "off"
        assert state["shuffleEnabled"] is False
        assert state["elapsedLabel"] == "0:00"
        assert state["serverTime"] > 0


class TestQueue:
    def test_load_queue_with_autoplay(self, client: TestClient, device: FakeDevice) -> None:
        response = client.post(
            "/api/player/queue", json={"tracks": SONGS, "startIndex": 1, "autoplay": True}
        )

        assert response.status_code == 200
        state = response.json()
        assert state["queueIndex"] == 1
        assert state["currentTrack"]["id"] == "s2"
        assert state["isPlaying"] is True
        assert [track["id"] for track in state["queue"]] == ["s1", "s2"]
        assert device.play_calls == ["https://cdn.example/s2.mp3"]

    def test_load_queue_without_autoplay_stays_stopped(self, client: TestClient) -> None:
        state = client.post("/api/player/queue", json={"tracks": SONGS}).json()

        assert state["status"] == "stopped"
        assert state["currentTrack"]["id"] == "s1"

    def test_track_without_id_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/player/queue", json={"tracks": [{"name": "No id"}]})
        assert response.status_code == 422

    def test_empty_queue_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/player/queue", json={"tracks": []})
        assert response.status_code == 400

    def test_queue_album(self, client: TestClient) -> None:
        response = client.post("/api/player/queue/album/a1", json={"autoplay": True})

        assert response.status_code == 200
        state = response.json()
        assert [track["id"] for track in state["queue"]] == ["s1", "s2", "s3"]
        assert state["queueDuration"] == "10 min"
        assert state["isPlaying"] is True

    def test_queue_playlist_without_body(self, client: TestClient) -> None:
        state = client.post("/api/player/queue/playlist/p1").json()

        assert [track["id"] for track in state["queue"]] == ["s3", "s1"]
        assert state["status"] == "stopped"

    def test_unknown_album(self, client: TestClient) -> None:
        response = client.post("/api/player/queue/album/a9")

        assert response.status_code == 404
        assert response.json()["detail"] == "Album a9 not found"

    def test_catalog_outage(self, client: TestClient, catalog: FakeCatalog) -> None:
        catalog.error = CatalogError("connection refused")

        response = client.post("/api/player/queue/album/a1")

        assert response.status_code == 502


class TestBrowse:
    def test_list_songs(self, client: TestClient) -> None:
        response = client.get("/api/player/songs")

        assert response.status_code == 200
        songs = response.json()["songs"]
        assert [song["id"] for song in songs] == ["s1", "s2", "s3"]
        assert songs[0]["file"] == "https://cdn.example/s1.mp3"

    def test_search_matches_names(self, client: TestClient) -> None:
        songs = client.get("/api/player/search", params={"query": "clos"}).json()["songs"]

        assert [song["id"] for song in songs] == ["s3"]

    def test_blank_search_returns_nothing(self, client: TestClient) -> None:
        assert client.get("/api/player/search").json() == {"songs": []}

    def test_search_result_can_be_queued(self, client: TestClient) -> None:
        songs = client.get("/api/player/search", params={"query": "middle"}).json()["songs"]

        state = client.post("/api/player/queue", json={"tracks": songs, "autoplay": True}).json()

        assert state["currentTrack"]["id"] == "s2"
        assert state["isPlaying"] is True

    def test_catalog_outage(self, client: TestClient, catalog: FakeCatalog) -> None:
        catalog.error = CatalogError("connection refused")

        assert client.get("/api/player/songs").status_code == 502
        assert client.get("/api/player/search", params={"query": "a"}).status_code == 502


class TestTransport:
    def test_play_by_id(self, client: TestClient, session: PlaybackSession) -> None:
        session.load_queue([S1, S2, S3])

        state = client.post("/api/player/play", json={"trackId": "s3"}).json()

        assert state["queueIndex"] == 2
        assert state["isPlaying"] is True

    def test_play_resumes_without_body(self, client: TestClient, session: PlaybackSession) -> None:
        session.load_queue([S1, S2])

        state = client.post("/api/player/play").json()

        assert state["isPlaying"] is True
        assert state["currentTrack"]["id"] == "s1"

    def test_pause_and_toggle(self, client: TestClient, session: PlaybackSession) -> None:
        session.load_queue([S1, S2])
        client.post("/api/player/play")

        assert client.post("/api/player/pause").json()["status"] == "paused"
        assert client.post("/api/player/toggle").json()["status"] == "playing"

    def test_next_and_previous(self, client: TestClient, session: PlaybackSession) -> None:
        session.load_queue([S1, S2, S3])

        assert client.post("/api/player/next").json()["queueIndex"] == 1
        assert client.post("/api/player/previous").json()["queueIndex"] == 0
        assert client.post("/api/player/previous").json()["queueIndex"] == 2


class TestPolicyAndLevels:
    def test_shuffle_and_loop(self, client: TestClient) -> None:
        assert client.post("/api/player/shuffle").json()["shuffleEnabled"] is True
        assert client.post("/api/player/loop").json()["loopMode"] == "all"
        assert client.post("/api/player/loop").json()["loopMode"] == "one"

    def test_volume_and_mute(self, client: TestClient, device: FakeDevice) -> None:
        state = client.post("/api/player/volume", json={"level": 0.3}).json()
        assert state["volume"] == 0.3
        assert device.volume == 0.3

        state = client.post("/api/player/mute").json()
        assert state["muted"] is True
        assert state["volume"] == 0.0

        state = client.post("/api/player/mute").json()
        assert state["volume"] == 0.3

    def test_seek(self, client: TestClient, session: PlaybackSession) -> None:
        session.load_queue([S1])

        state = client.post("/api/player/seek", json={"fraction": 0.5}).json()

        assert state["elapsed"] == 100.0
        assert state["progress"] == 0.5
        assert state["elapsedLabel"] == "1:40"


def test_notifications_are_handed_out_once(client: TestClient, messages: list) -> None:
    messages.append(("Could not play this track", "error"))

    assert client.get("/api/player/notifications").json() == [
        {"message": "Could not play this track", "level": "error"}
    ]
    assert client.get("/api/player/notifications").json() == []
