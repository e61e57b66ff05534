# dashboard.py
import streamlit as st
import pandas as pd
import plotly.express as px
from data import (GAMELOG_FILE, LEAGUE_TABLE_FILE, build_league_table,
                  get_players, get_player_summary, format_last_updated)
from partnerships import analyze_partnerships, partnership_band
from loader import SourceUnavailableError, load_sources

st.set_page_config(
    page_title="Sidewinders Stats",
    page_icon="⚽",
    layout="wide"
)

st.markdown("""
<style>
@media (max-width: 768px) {
    .block-container {
        padding: 0.75rem 0.5rem 2rem 0.5rem !important;
    }
    [data-testid="column"] {
        width: 100% !important;
        min-width: 100% !important;
        flex: none !important;
    }
    [data-testid="stDataFrame"] {
        overflow-x: auto !important;
        max-width: 100vw !important;
    }
}
</style>
""", unsafe_allow_html=True)


def _secret(key: str, default):
    try:
        return st.secrets.get(key, default)
    except FileNotFoundError:
        return default


GAMELOG_SOURCE      = _secret("gamelog_url", str(GAMELOG_FILE))
LEAGUE_TABLE_SOURCE = _secret("league_table_url", str(LEAGUE_TABLE_FILE))


@st.cache_data(ttl=300)
def _load(game_log_source: str, league_table_source: str):
    sources = load_sources(game_log_source, league_table_source)
    sources["loaded_at"] = format_last_updated()
    return sources


# ── Load data ──────────────────────────────────────────────
try:
    sources = _load(GAMELOG_SOURCE, LEAGUE_TABLE_SOURCE)
except SourceUnavailableError as exc:
    st.error(f"Couldn't load the game log. {exc}")
    st.stop()

games   = sources["game_log"]
players = get_players(games)

st.title("⚽ Sidewinders — League Stats")

with st.sidebar:
    st.markdown("### 📊 Table Source")
    _use_sheet = st.toggle(
        "Use published standings",
        value=False,
        disabled=sources["league_table"] is None,
        help="Show the precomputed LeagueTable sheet instead of recomputing from the game log",
    )
    st.divider()
    st.caption(f"**{len(games)}** appearances · **{len({g['game_id'] for g in games})}** games · "
               f"**{len(players)}** players")
    st.caption(f"🕒 Last updated: {sources['loaded_at']}")
    if st.button("Reload data"):
        _load.clear()
        st.rerun()

if not games:
    st.info("No data available yet. The game log has no games in it.")
    st.stop()

league = sources["league_table"] if _use_sheet else build_league_table(games)

tab_table, tab_players = st.tabs(["🏆 League Table", "🤝 Player Analysis"])

# ── League table ───────────────────────────────────────────
with tab_table:
    st.dataframe(
        league.rename(columns={
            "rank": "#", "player": "Player", "games": "P", "wins": "W",
            "draws": "D", "losses": "L", "goals": "Gls", "own_goals": "OG",
            "assists": "Ast", "penalties": "Pen", "total_points": "Pts",
            "points_per_game": "PPG", "win_pct": "Win %",
        }),
        hide_index=True, use_container_width=True,
    )
    if not league.empty:
        fig = px.bar(
            league.sort_values("points_per_game", ascending=False),
            x="player", y="points_per_game", color="win_pct",
            labels={"player": "", "points_per_game": "Points per game", "win_pct": "Win %"},
            color_continuous_scale="RdYlGn",
        )
        fig.update_layout(height=360, margin=dict(t=20, b=10))
        st.plotly_chart(fig, use_container_width=True)

# ── Player analysis ────────────────────────────────────────
with tab_players:
    selected = st.selectbox("Choose a player", players, index=None,
                            placeholder="Choose a player...", key="selected_player")
    if selected:
        summary = get_player_summary(games, selected)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Games", summary["games"])
        c2.metric("Win %", f"{summary['win_pct']}%")
        c3.metric("Goals", summary["goals"])
        c4.metric("Assists", summary["assists"])

        pdf = analyze_partnerships(games, selected, players)
        if pdf.empty:
            st.info(f"{selected} hasn't shared a game with anyone yet.")
        else:
            disp = pd.DataFrame({
                "Player":        pdf["player"],
                "Games":         pdf["games_together"],
                "Same Team":     pdf["same_team"],
                "Opposite Team": pdf["opposite_team"],
                "Win % Together": [f"{p}%" if n else "-"
                                   for p, n in zip(pdf["same_team_win_pct"], pdf["same_team"])],
                "H2H Win %":     [f"{p}%" if n else "-"
                                  for p, n in zip(pdf["h2h_win_pct"], pdf["opposite_team"])],
            })
            _bands = [partnership_band(p) if n else ""
                      for p, n in zip(pdf["same_team_win_pct"], pdf["same_team"])]
            _colors = {"win-high": "background-color: #d4edda", "loss-high": "background-color: #f8d7da"}

            def _highlight(row):
                return [_colors.get(_bands[row.name], "")] * len(row)

            st.dataframe(disp.style.apply(_highlight, axis=1),
                         hide_index=True, use_container_width=True)
