# partnerships.py
import pandas as pd
from data import get_players, round_half_up

PARTNERSHIP_COLUMNS = [
    "player", "games_together", "same_team", "opposite_team",
    "wins_together", "same_team_win_pct", "h2h_wins", "h2h_win_pct",
]


def _game_key(g: dict) -> str:
    return f"{g['game_id']}|{g['team']}"


def _pct(wins: int, games: int) -> int:
    return int(round_half_up(100 * wins / games)) if games > 0 else 0


def analyze_partnerships(games: list, selected_player: str, players: list = None) -> pd.DataFrame:
    """Co-occurrence stats between `selected_player` and every other player.

    Same-team games share game_id and team; opposite-team (head-to-head) games
    share game_id only. Win counts always come from the selected player's own
    Result field, so A->B and B->A can disagree when the log does.
    """
    if players is None:
        players = get_players(games)

    by_player: dict = {}
    for g in games:
        by_player.setdefault(g.get("player"), []).append(g)

    selected_games = by_player.get(selected_player, [])
    selected_map = {_game_key(g): g for g in selected_games}

    rows = []
    for other in players:
        if other == selected_player:
            continue
        other_games = by_player.get(other, [])
        other_map = {_game_key(g): g for g in other_games}

        same_team = 0
        wins_together = 0
        for key, g in selected_map.items():
            if key in other_map:
                same_team += 1
                if g["result"] == "Win":
                    wins_together += 1

        # Full cross product: every pairing on different sides of the same game counts
        opposite_team = 0
        h2h_wins = 0
        for s in selected_games:
            for o in other_games:
                if s["game_id"] == o["game_id"] and s["team"] != o["team"]:
                    opposite_team += 1
                    if s["result"] == "Win":
                        h2h_wins += 1

        together = same_team + opposite_team
        if together == 0:
            continue
        rows.append({
            "player":            other,
            "games_together":    together,
            "same_team":         same_team,
            "opposite_team":     opposite_team,
            "wins_together":     wins_together,
            "same_team_win_pct": _pct(wins_together, same_team),
            "h2h_wins":          h2h_wins,
            "h2h_win_pct":       _pct(h2h_wins, opposite_team),
        })

    rows.sort(key=lambda r: (-r["games_together"], -r["same_team_win_pct"]))
    return pd.DataFrame(rows, columns=PARTNERSHIP_COLUMNS)


def partnership_band(win_pct) -> str:
    """Row highlight class for a same-team win %."""
    if win_pct is None:
        return ""
    if win_pct >= 60:
        return "win-high"
    if win_pct <= 40:
        return "loss-high"
    return ""
