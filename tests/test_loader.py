# tests/test_loader.py
import json
import pytest
import requests
import loader
from loader import SourceUnavailableError, fetch_text, load_bundle, load_sources

GAMELOG = "ID,Player,Team,Result,Gls\n1,Alice,Bibs,Win,2\n1,Bob,Colours,Loss,0\n"
STANDINGS = "Player,P,W,D,L,Gls,Ast,OG,Pts\nAlice,1,1,0,0,2,0,0,3\nBob,1,0,0,1,0,0,0,0\n"


class FakeResponse:
    def __init__(self, text="", status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def get(self, url, timeout=None):
        self.calls.append(url)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(loader.time, "sleep", lambda s: None)


def test_fetch_text_from_url():
    session = FakeSession([FakeResponse(GAMELOG)])
    assert fetch_text("https://example.org/GameLog.csv", session=session) == GAMELOG


def test_fetch_text_404_is_source_unavailable():
    session = FakeSession([FakeResponse(status=404)])
    with pytest.raises(SourceUnavailableError) as exc:
        fetch_text("https://example.org/missing.csv", session=session)
    assert "HTTP 404" in str(exc.value)
    assert len(session.calls) == 1


def test_fetch_text_retries_transient_errors():
    session = FakeSession([requests.ConnectionError("down"), FakeResponse(status=503), FakeResponse(GAMELOG)])
    assert fetch_text("https://example.org/GameLog.csv", retries=2, session=session) == GAMELOG
    assert len(session.calls) == 3


def test_fetch_text_gives_up_after_retries():
    session = FakeSession([requests.Timeout("slow")] * 3)
    with pytest.raises(SourceUnavailableError):
        fetch_text("https://example.org/GameLog.csv", retries=2, session=session)
    assert len(session.calls) == 3


def test_fetch_text_local_file(tmp_path):
    path = tmp_path / "GameLog.csv"
    path.write_text(GAMELOG, encoding="utf-8")
    assert fetch_text(path) == GAMELOG


def test_fetch_text_missing_file(tmp_path):
    with pytest.raises(SourceUnavailableError):
        fetch_text(tmp_path / "nope.csv")


def test_load_sources_empty_log_is_not_an_error(tmp_path):
    path = tmp_path / "GameLog.csv"
    path.write_text("ID,Player,Team,Result\n", encoding="utf-8")
    sources = load_sources(path)
    assert sources["game_log"] == []
    assert sources["league_table"] is None


def test_load_sources_optional_standings(tmp_path):
    log = tmp_path / "GameLog.csv"
    log.write_text(GAMELOG, encoding="utf-8")
    table = tmp_path / "LeagueTable.csv"
    table.write_text(STANDINGS, encoding="utf-8")

    sources = load_sources(log, table)
    assert len(sources["game_log"]) == 2
    assert list(sources["league_table"]["player"]) == ["Alice", "Bob"]

    missing = load_sources(log, tmp_path / "missing.csv")
    assert missing["league_table"] is None


def test_load_sources_requires_game_log(tmp_path):
    with pytest.raises(SourceUnavailableError):
        load_sources(tmp_path / "missing.csv")


def test_load_bundle():
    bundle = load_bundle(json.dumps({"GameLog": GAMELOG, "League Table": STANDINGS}))
    assert [g["player"] for g in bundle["game_log"]] == ["Alice", "Bob"]
    assert bundle["league_table"].iloc[0]["total_points"] == 3
    assert bundle["player_analysis"] == []

    empty = load_bundle("{}")
    assert empty["game_log"] == []
    assert empty["league_table"] is None


def test_load_bundle_invalid_json():
    with pytest.raises(ValueError):
        load_bundle("not json")
    with pytest.raises(ValueError):
        load_bundle("[1, 2]")


def test_default_session_is_closed(monkeypatch):
    session = FakeSession([FakeResponse(GAMELOG)])
    monkeypatch.setattr(loader.requests, "Session", lambda: session)
    assert fetch_text("https://example.org/GameLog.csv") == GAMELOG
    assert session.closed


def test_undecodable_file_is_parsed_leniently(tmp_path):
    path = tmp_path / "GameLog.csv"
    path.write_bytes(b"ID,Player,Team,Result\n1,Al\xff\xfeice,Bibs,Win\n2,Bob,Bibs,Loss\n")
    sources = load_sources(path)
    players = [g["player"] for g in sources["game_log"]]
    assert len(players) == 2
    assert players[0].startswith("Al") and players[0].endswith("ice")
    assert players[1] == "Bob"
