# loader.py
import json
import time
import requests
from pathlib import Path
from data import load_game_log, load_league_table, parse_csv

RETRY_STATUSES = {429, 500, 502, 503, 504}


class SourceUnavailableError(Exception):
    """The game log could not be fetched at all (network, 404, missing file)."""

    def __init__(self, source, reason: str = ""):
        self.source = str(source)
        self.reason = reason
        msg = f"Source unavailable: {self.source}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


def _is_url(source) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


def _fetch_url(url: str, timeout: float, retries: int, session) -> str:
    attempt = 0
    while True:
        attempt += 1
        try:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
            return response.text
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status not in RETRY_STATUSES or attempt > retries:
                raise SourceUnavailableError(url, f"HTTP {status}") from exc
            reason = f"HTTP {status}"
        except (requests.ConnectionError, requests.Timeout) as exc:
            if attempt > retries:
                raise SourceUnavailableError(url, type(exc).__name__) from exc
            reason = type(exc).__name__
        except requests.RequestException as exc:
            raise SourceUnavailableError(url, type(exc).__name__) from exc
        wait = min(2 ** (attempt - 1), 8)
        print(f"[RETRY] {url}: {reason}, waiting {wait}s...")
        time.sleep(wait)


def fetch_text(source, timeout: float = 30, retries: int = 2, session=None) -> str:
    """Return the raw text behind a URL or local path.

    Raises SourceUnavailableError on any transport failure so callers can tell
    "couldn't load the file" apart from "file loaded but holds no games".
    """
    if _is_url(source):
        if session is not None:
            text = _fetch_url(str(source), timeout, retries, session)
        else:
            with requests.Session() as own_session:
                text = _fetch_url(str(source), timeout, retries, own_session)
    else:
        path = Path(source)
        try:
            # Undecodable bytes become U+FFFD and are parsed like any other malformed text
            text = path.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as exc:
            raise SourceUnavailableError(path, type(exc).__name__) from exc
    print(f"[LOAD] {source} ({len(text)} chars)")
    return text


def load_bundle(json_text: str) -> dict:
    """Parse the embedded-JSON form: {"GameLog": csv, "League Table": csv, ...}."""
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid data bundle: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Invalid data bundle: expected a JSON object")

    league_csv = payload.get("League Table") or ""
    return {
        "game_log":        load_game_log(payload.get("GameLog") or ""),
        "league_table":    load_league_table(league_csv) if league_csv else None,
        "player_analysis": parse_csv(payload.get("Player Analysis") or ""),
    }


def load_sources(game_log_source, league_table_source=None, session=None) -> dict:
    """Fetch and parse the game log (required) and standings CSV (optional)."""
    game_log = load_game_log(fetch_text(game_log_source, session=session))

    league_table = None
    if league_table_source:
        try:
            league_table = load_league_table(fetch_text(league_table_source, session=session))
        except SourceUnavailableError as exc:
            print(f"[SKIP] {exc}")

    if not game_log:
        print(f"[LOAD] {game_log_source} holds no games yet")
    return {"game_log": game_log, "league_table": league_table}
