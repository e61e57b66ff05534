# data.py
import math
import re
import pandas as pd
from datetime import datetime
from pathlib import Path

GAMELOG_FILE      = Path(__file__).parent / "GameLog.csv"
LEAGUE_TABLE_FILE = Path(__file__).parent / "LeagueTable.csv"

# Plain decimals only: no underscores, exponents or non-ASCII digits
NUMBER_RE = re.compile(r"[+-]?[0-9]+(\.[0-9]+)?")

# Only these columns are coerced to numbers by the parser
NUMERIC_COLUMNS = {"Gls", "OG", "Ast", "Pen", "Goals", "Own Goals", "Assists", "Penalties"}

# Spreadsheet header -> canonical record key
COLUMN_ALIASES = {
    "Player":      "player",
    "Player Name": "player",
    "ID":          "game_id",
    "Game ID":     "game_id",
    "Game":        "game_id",
    "Team":        "team",
    "Result":      "result",
    "Gls":         "goals",
    "Goals":       "goals",
    "OG":          "own_goals",
    "Own Goals":   "own_goals",
    "Ast":         "assists",
    "Assists":     "assists",
    "Pen":         "penalties",
    "Penalties":   "penalties",
}

STAT_KEYS = ["goals", "own_goals", "assists", "penalties"]

LEAGUE_COLUMNS = [
    "rank", "player", "games", "wins", "draws", "losses",
    "goals", "own_goals", "assists", "penalties",
    "total_points", "points_per_game", "win_pct",
]


# ── CSV parsing ──────────────────────────────────────────────

def parse_csv_line(line: str) -> list:
    """Split one CSV line on commas that are outside double quotes."""
    values = []
    current = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')  # escaped quote
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    values.append("".join(current))
    return values


def _clean_field(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1].strip()
    return value


def _coerce_number(value: str):
    if not NUMBER_RE.fullmatch(value):
        return value
    if "." in value:
        return float(value)
    return int(value)


def parse_csv(text: str) -> list:
    """Parse delimited text into row dicts keyed by the header row.

    Returns [] when there is no header plus at least one data row. Rows with an
    empty first column are dropped, missing trailing values leave the key out
    and surplus values are ignored.
    """
    if not text:
        return []
    lines = [ln.rstrip("\r") for ln in text.split("\n") if ln.strip()]
    if len(lines) < 2:
        return []

    headers = [_clean_field(h) for h in parse_csv_line(lines[0])]
    rows = []
    for line in lines[1:]:
        values = parse_csv_line(line)
        row = {}
        for header, raw in zip(headers, values):
            value = _clean_field(raw)
            if header in NUMERIC_COLUMNS:
                value = _coerce_number(value)
            row[header] = value
        if not row.get(headers[0]):
            continue
        rows.append(row)
    return rows


# ── Game log ─────────────────────────────────────────────────

def _to_int(value) -> int:
    """Lenient count coercion: blanks, junk and negatives become 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def normalize_record(row: dict) -> dict:
    """Map one parsed GameLog row onto canonical GameRecord keys."""
    record = {}
    for header, value in row.items():
        record[COLUMN_ALIASES.get(header, header)] = value
    for key in ("game_id", "player", "team", "result"):
        record[key] = str(record.get(key, "")).strip()
    for key in STAT_KEYS:
        record[key] = _to_int(record.get(key, 0))
    return record


def load_game_log(raw_text: str) -> list:
    """Raw GameLog CSV text -> list of GameRecord dicts ([] for empty input)."""
    games = []
    for row in parse_csv(raw_text):
        record = normalize_record(row)
        if not record["player"]:
            continue
        games.append(record)
    return games


def get_players(games: list) -> list:
    return sorted({g["player"] for g in games if g.get("player")})


# ── League table ─────────────────────────────────────────────

def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _empty_aggregate(player: str) -> dict:
    return {
        "player": player, "games": 0,
        "wins": 0, "draws": 0, "losses": 0,
        "goals": 0, "own_goals": 0, "assists": 0, "penalties": 0,
    }


def _add_derived(r: dict) -> dict:
    n = r["games"]
    if "total_points" not in r:
        r["total_points"] = 3 * r["wins"] + r["draws"]
    r["points_per_game"] = round_half_up(r["total_points"] / n, 1) if n > 0 else 0
    r["win_pct"]         = round_half_up(100 * r["wins"] / n, 1) if n > 0 else 0
    return r


def _ranking_key(r: dict) -> tuple:
    return (
        -r["total_points"], -r["points_per_game"], -r["win_pct"],
        -r["goals"], -r["assists"], r["player"],
    )


def _to_league_frame(rows: list) -> pd.DataFrame:
    rows = sorted(rows, key=_ranking_key)
    for rank, r in enumerate(rows, start=1):
        r["rank"] = rank
    return pd.DataFrame(rows, columns=LEAGUE_COLUMNS)


def build_league_table(games: list) -> pd.DataFrame:
    """Fold GameRecords into one ranked row per player."""
    rows = {name: _empty_aggregate(name) for name in get_players(games)}

    for g in games:
        r = rows.get(g.get("player"))
        if r is None:
            continue
        result = g.get("result")
        if result == "Win":
            r["wins"] += 1
        elif result == "Draw":
            r["draws"] += 1
        elif result == "Loss":
            r["losses"] += 1
        for stat in STAT_KEYS:
            r[stat] += _to_int(g.get(stat, 0))

    # Derived metrics only once every count is final
    for r in rows.values():
        r["games"] = r["wins"] + r["draws"] + r["losses"]
        _add_derived(r)

    return _to_league_frame(list(rows.values()))


def load_league_table(raw_text: str) -> pd.DataFrame:
    """Precomputed standings CSV (P, W, D, L, Gls, Ast, OG, Pts) -> league table."""
    rows = []
    for row in parse_csv(raw_text):
        name = str(row.get("Player", row.get("Player Name", ""))).strip()
        if not name:
            continue
        r = _empty_aggregate(name)
        r["wins"]      = _to_int(row.get("W", 0))
        r["draws"]     = _to_int(row.get("D", 0))
        r["losses"]    = _to_int(row.get("L", 0))
        r["goals"]     = _to_int(row.get("Gls", row.get("Goals", 0)))
        r["own_goals"] = _to_int(row.get("OG", row.get("Own Goals", 0)))
        r["assists"]   = _to_int(row.get("Ast", row.get("Assists", 0)))
        r["penalties"] = _to_int(row.get("Pen", row.get("Penalties", 0)))
        r["games"]     = r["wins"] + r["draws"] + r["losses"]
        if str(row.get("Pts", "")).strip():
            r["total_points"] = _to_int(row["Pts"])
        rows.append(_add_derived(r))
    return _to_league_frame(rows)


def get_player_summary(games: list, player: str) -> dict:
    """Headline numbers for one player: appearances, wins, goals, assists, win %."""
    mine = [g for g in games if g.get("player") == player]
    n = len(mine)
    wins = sum(1 for g in mine if g.get("result") == "Win")
    return {
        "player":  player,
        "games":   n,
        "wins":    wins,
        "goals":   sum(_to_int(g.get("goals", 0)) for g in mine),
        "assists": sum(_to_int(g.get("assists", 0)) for g in mine),
        "win_pct": int(round_half_up(100 * wins / n)) if n > 0 else 0,
    }


def format_last_updated(dt: datetime = None) -> str:
    """en-GB style timestamp, e.g. '07/03/2026, 19:45'."""
    return (dt or datetime.now()).strftime("%d/%m/%Y, %H:%M")
