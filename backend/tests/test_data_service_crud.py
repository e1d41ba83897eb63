"""
Tests for data_service CRUD operations and derived league data.
Covers teams, players, matches, pair updates and score recomputation.
"""
import random
import pytest
import pytest_asyncio
from datetime import date
from sqlalchemy import select
from backend.database.models import Team, Player, User, UserRole, Match, MatchPair, MatchNomination
from backend.services import data_service, nomination_service
from backend.services.errors import NotFoundError, DuplicateError
from backend.services.standings_service import TWO_POINT_CONVENTION


@pytest_asyncio.fixture
async def match_id(db_session, two_teams):
    home, away, _, _ = two_teams
    match = await data_service.create_match(db_session, home.id, away.id, date(2024, 1, 8), "Sports Hall")
    return match["id"]


def _scores(home_games, away_games):
    """Pair update body with straight-game scores."""
    return {
        "game1_home_score": home_games[0],
        "game1_away_score": away_games[0],
        "game2_home_score": home_games[1],
        "game2_away_score": away_games[1],
    }


HOME_WIN = _scores((21, 21), (10, 12))
AWAY_WIN = _scores((10, 12), (21, 21))


# ============================================================================
# Team CRUD Tests
# ============================================================================

@pytest.mark.asyncio
async def test_create_and_list_teams(db_session):
    await data_service.create_team(db_session, "Zebra Smashers", home_day="Monday")
    await data_service.create_team(db_session, "Aces", home_time="19:30", address="Hall 1")

    teams = await data_service.list_teams(db_session)

    assert [t["name"] for t in teams] == ["Aces", "Zebra Smashers"]
    assert teams[0]["home_time"] == "19:30"
    assert teams[1]["home_day"] == "Monday"


@pytest.mark.asyncio
async def test_create_team_duplicate_name(db_session):
    await data_service.create_team(db_session, "Aces")
    with pytest.raises(DuplicateError):
        await data_service.create_team(db_session, "Aces")


@pytest.mark.asyncio
async def test_update_team_only_changes_supplied_fields(db_session):
    team = await data_service.create_team(db_session, "Aces", home_day="Monday", address="Hall 1")

    updated = await data_service.update_team(db_session, team["id"], {"home_day": "Friday"})

    assert updated["home_day"] == "Friday"
    assert updated["address"] == "Hall 1"
    assert updated["name"] == "Aces"


@pytest.mark.asyncio
async def test_update_team_not_found(db_session):
    with pytest.raises(NotFoundError):
        await data_service.update_team(db_session, 9999, {"name": "Nobody"})


@pytest.mark.asyncio
async def test_get_team_missing(db_session):
    assert await data_service.get_team(db_session, 9999) is None


@pytest.mark.asyncio
async def test_delete_team_cascades(db_session, two_teams, match_id):
    home, away, home_players, _ = two_teams
    manager = User(username="coach", password_hash="x", role=UserRole.TEAM_MANAGER, team_id=home.id)
    db_session.add(manager)
    await db_session.commit()
    await nomination_service.nominate(db_session, match_id, home_players[0].id)

    assert await data_service.delete_team(db_session, home.id) is True

    assert await data_service.get_team(db_session, home.id) is None
    assert await data_service.get_match(db_session, match_id) is None
    assert await data_service.list_players(db_session, team_id=home.id) == []
    pairs = (await db_session.execute(select(MatchPair).where(MatchPair.match_id == match_id))).scalars().all()
    assert pairs == []
    nominations = (await db_session.execute(select(MatchNomination))).scalars().all()
    assert nominations == []
    await db_session.refresh(manager)
    assert manager.team_id is None
    # The other team is untouched
    assert await data_service.get_team(db_session, away.id) is not None


@pytest.mark.asyncio
async def test_delete_team_missing(db_session):
    assert await data_service.delete_team(db_session, 9999) is False


# ============================================================================
# Player CRUD Tests
# ============================================================================

@pytest.mark.asyncio
async def test_create_player(db_session, two_teams):
    home, _, _, _ = two_teams

    player = await data_service.create_player(db_session, home.id, "Gina")

    assert player["id"] > 0
    assert player["team_id"] == home.id
    assert player["team_name"] == "Shuttle Stars"


@pytest.mark.asyncio
async def test_create_player_unknown_team(db_session):
    with pytest.raises(NotFoundError):
        await data_service.create_player(db_session, 9999, "Ghost")


@pytest.mark.asyncio
async def test_list_players_filter_by_team(db_session, two_teams):
    home, _, _, _ = two_teams

    all_players = await data_service.list_players(db_session)
    home_players = await data_service.list_players(db_session, team_id=home.id)

    assert len(all_players) == 6
    assert [p["name"] for p in home_players] == ["Alice", "Bea", "Cara"]


@pytest.mark.asyncio
async def test_update_player(db_session, two_teams):
    home, away, home_players, _ = two_teams

    updated = await data_service.update_player(db_session, home_players[0].id, name="Alicia", team_id=away.id)

    assert updated["name"] == "Alicia"
    assert updated["team_id"] == away.id
    with pytest.raises(NotFoundError):
        await data_service.update_player(db_session, home_players[0].id, team_id=9999)


@pytest.mark.asyncio
async def test_moving_player_drops_nominations_for_other_teams_matches(db_session, two_teams, match_id):
    home, _, home_players, _ = two_teams
    third = await data_service.create_team(db_session, "Drop Shots")
    third_match = await data_service.create_match(db_session, third["id"], home.id, date(2024, 1, 15))
    player_id = home_players[0].id
    await nomination_service.nominate(db_session, match_id, player_id)
    await nomination_service.nominate(db_session, third_match["id"], player_id)

    await data_service.update_player(db_session, player_id, team_id=third["id"])

    assert await nomination_service.list_nominations(db_session, match_id) == []
    kept = await nomination_service.list_nominations(db_session, third_match["id"])
    assert [n["player_id"] for n in kept] == [player_id]


@pytest.mark.asyncio
async def test_renaming_player_keeps_nominations(db_session, two_teams, match_id):
    _, _, home_players, _ = two_teams
    await nomination_service.nominate(db_session, match_id, home_players[0].id)

    await data_service.update_player(db_session, home_players[0].id, name="Alicia")

    assert len(await nomination_service.list_nominations(db_session, match_id)) == 1


@pytest.mark.asyncio
async def test_delete_player_empties_pair_slots(db_session, two_teams, match_id):
    _, _, home_players, away_players = two_teams
    match = await data_service.get_match(db_session, match_id)
    pair_id = match["pairs"][0]["id"]
    await data_service.update_match_pair(db_session, pair_id, {
        "home_player1_id": home_players[0].id,
        "home_player2_id": home_players[1].id,
        "away_player1_id": away_players[0].id,
        "away_player2_id": away_players[1].id,
        **HOME_WIN,
    })

    assert await data_service.delete_player(db_session, home_players[0].id) is True

    pair = await data_service.get_pair(db_session, pair_id)
    assert pair["home_player1_id"] is None
    assert pair["home_player2_id"] == home_players[1].id
    # Scores depend only on game scores
    match = await data_service.get_match(db_session, match_id)
    assert (match["home_score"], match["away_score"]) == (1, 0)


@pytest.mark.asyncio
async def test_delete_player_missing(db_session):
    assert await data_service.delete_player(db_session, 9999) is False


# ============================================================================
# Match CRUD Tests
# ============================================================================

@pytest.mark.asyncio
async def test_create_match_creates_nine_empty_pairs(db_session, two_teams):
    home, away, _, _ = two_teams

    match = await data_service.create_match(db_session, home.id, away.id, date(2024, 1, 8))

    assert match["home_team_name"] == "Shuttle Stars"
    assert match["away_team_name"] == "Net Ninjas"
    assert match["match_date"] == "2024-01-08"
    assert (match["home_score"], match["away_score"]) == (0, 0)
    assert match["completed"] is False
    assert [p["pair_number"] for p in match["pairs"]] == list(range(1, 10))
    for pair in match["pairs"]:
        assert pair["home_player1_id"] is None
        assert pair["game1_home_score"] == 0
        assert pair["winner"] is None


@pytest.mark.asyncio
async def test_create_match_unknown_team(db_session, two_teams):
    home, _, _, _ = two_teams
    with pytest.raises(NotFoundError):
        await data_service.create_match(db_session, home.id, 9999, date(2024, 1, 8))


@pytest.mark.asyncio
async def test_list_matches_most_recent_first(db_session, two_teams):
    home, away, _, _ = two_teams
    await data_service.create_match(db_session, home.id, away.id, date(2024, 1, 8))
    await data_service.create_match(db_session, away.id, home.id, date(2024, 3, 4))

    matches = await data_service.list_matches(db_session)

    assert [m["match_date"] for m in matches] == ["2024-03-04", "2024-01-08"]
    assert len(await data_service.list_matches(db_session, team_id=home.id)) == 2
    assert await data_service.list_matches(db_session, team_id=9999) == []


@pytest.mark.asyncio
async def test_update_match_metadata(db_session, match_id):
    updated = await data_service.update_match(
        db_session, match_id, {"completed": True, "location": "Gym 2", "match_date": date(2024, 1, 9)}
    )

    assert updated["completed"] is True
    assert updated["location"] == "Gym 2"
    assert updated["match_date"] == "2024-01-09"


@pytest.mark.asyncio
async def test_update_match_ignores_scores(db_session, match_id):
    updated = await data_service.update_match(db_session, match_id, {"home_score": 9})
    assert updated["home_score"] == 0


@pytest.mark.asyncio
async def test_delete_match(db_session, match_id):
    assert await data_service.delete_match(db_session, match_id) is True
    assert await data_service.get_match(db_session, match_id) is None
    assert await data_service.delete_match(db_session, match_id) is False


# ============================================================================
# Pair updates and score aggregation
# ============================================================================

@pytest.mark.asyncio
async def test_update_pair_recomputes_match_score(db_session, match_id):
    match = await data_service.get_match(db_session, match_id)
    pair_id = match["pairs"][0]["id"]

    pair = await data_service.update_match_pair(db_session, pair_id, {
        "game1_home_score": 21, "game1_away_score": 15,
        "game2_home_score": 18, "game2_away_score": 21,
        "game3_home_score": 21, "game3_away_score": 19,
    })

    assert pair["home_games"] == 2
    assert pair["away_games"] == 1
    assert pair["winner"] == "home"
    assert pair["home_points"] == 60
    match = await data_service.get_match(db_session, match_id)
    assert (match["home_score"], match["away_score"]) == (1, 0)


@pytest.mark.asyncio
async def test_five_three_one_match(db_session, match_id):
    match = await data_service.get_match(db_session, match_id)
    pair_ids = [p["id"] for p in match["pairs"]]

    for pair_id in pair_ids[:5]:
        await data_service.update_match_pair(db_session, pair_id, HOME_WIN)
    for pair_id in pair_ids[5:8]:
        await data_service.update_match_pair(db_session, pair_id, AWAY_WIN)

    match = await data_service.get_match(db_session, match_id)
    assert (match["home_score"], match["away_score"]) == (5, 3)
    assert match["pairs"][8]["winner"] is None


@pytest.mark.asyncio
async def test_score_is_independent_of_update_order(db_session, match_id):
    match = await data_service.get_match(db_session, match_id)
    pair_ids = [p["id"] for p in match["pairs"]]

    # Flip a pair from home to away: the match score follows
    await data_service.update_match_pair(db_session, pair_ids[0], HOME_WIN)
    await data_service.update_match_pair(db_session, pair_ids[1], HOME_WIN)
    await data_service.update_match_pair(db_session, pair_ids[0], AWAY_WIN)

    match = await data_service.get_match(db_session, match_id)
    assert (match["home_score"], match["away_score"]) == (1, 1)


@pytest.mark.asyncio
async def test_recompute_is_idempotent(db_session, match_id):
    match = await data_service.get_match(db_session, match_id)
    await data_service.update_match_pair(db_session, match["pairs"][0]["id"], HOME_WIN)

    first = await data_service.recompute_match_score(db_session, match_id)
    second = await data_service.recompute_match_score(db_session, match_id)

    assert first == second == (1, 0)


@pytest.mark.asyncio
async def test_recompute_corrects_stale_score(db_session, match_id):
    match = await db_session.get(Match, match_id)
    match.home_score = 7
    await db_session.commit()

    assert await data_service.recompute_all_match_scores(db_session) == 1
    assert (match.home_score, match.away_score) == (0, 0)


@pytest.mark.asyncio
async def test_recompute_missing_match(db_session):
    with pytest.raises(NotFoundError):
        await data_service.recompute_match_score(db_session, 9999)


@pytest.mark.asyncio
async def test_update_pair_partial_keeps_other_fields(db_session, two_teams, match_id):
    _, _, home_players, _ = two_teams
    match = await data_service.get_match(db_session, match_id)
    pair_id = match["pairs"][2]["id"]
    await data_service.update_match_pair(db_session, pair_id, {"home_player1_id": home_players[0].id, **HOME_WIN})

    pair = await data_service.update_match_pair(db_session, pair_id, {"home_player2_id": home_players[1].id})

    assert pair["home_player1_id"] == home_players[0].id
    assert pair["home_player1_name"] == "Alice"
    assert pair["home_player2_name"] == "Bea"
    assert pair["winner"] == "home"


@pytest.mark.asyncio
async def test_update_pair_explicit_null_clears_slot(db_session, two_teams, match_id):
    _, _, home_players, _ = two_teams
    match = await data_service.get_match(db_session, match_id)
    pair_id = match["pairs"][0]["id"]
    await data_service.update_match_pair(db_session, pair_id, {"home_player1_id": home_players[0].id})

    pair = await data_service.update_match_pair(db_session, pair_id, {"home_player1_id": None})

    assert pair["home_player1_id"] is None


@pytest.mark.asyncio
async def test_update_pair_unknown_player(db_session, match_id):
    match = await data_service.get_match(db_session, match_id)
    with pytest.raises(NotFoundError):
        await data_service.update_match_pair(db_session, match["pairs"][0]["id"], {"away_player1_id": 9999})


@pytest.mark.asyncio
async def test_update_pair_missing(db_session):
    with pytest.raises(NotFoundError):
        await data_service.update_match_pair(db_session, 9999, HOME_WIN)


# ============================================================================
# Pair generation
# ============================================================================

@pytest.mark.asyncio
async def test_generate_match_pairs_uses_nominated_players(db_session, two_teams, match_id):
    _, _, home_players, away_players = two_teams
    for player in home_players + away_players:
        await nomination_service.nominate(db_session, match_id, player.id)

    match = await data_service.generate_match_pairs(db_session, match_id, rng=random.Random(4))

    home_ids = {p.id for p in home_players}
    away_ids = {p.id for p in away_players}
    filled = [p for p in match["pairs"] if p["home_player1_id"] is not None]
    # Three players per side allow three distinct partnerships
    assert len(filled) == 3
    for pair in filled:
        assert {pair["home_player1_id"], pair["home_player2_id"]} <= home_ids
        assert {pair["away_player1_id"], pair["away_player2_id"]} <= away_ids
    assert (match["home_score"], match["away_score"]) == (0, 0)


@pytest.mark.asyncio
async def test_generate_match_pairs_without_nominations(db_session, match_id):
    match = await data_service.generate_match_pairs(db_session, match_id)
    assert all(p["home_player1_id"] is None for p in match["pairs"])


@pytest.mark.asyncio
async def test_generate_match_pairs_missing_match(db_session):
    with pytest.raises(NotFoundError):
        await data_service.generate_match_pairs(db_session, 9999)


# ============================================================================
# Standings and statistics
# ============================================================================

@pytest.mark.asyncio
async def test_standings_only_count_completed_matches(db_session, two_teams, match_id):
    home, away, _, _ = two_teams
    match = await data_service.get_match(db_session, match_id)
    await data_service.update_match_pair(db_session, match["pairs"][0]["id"], HOME_WIN)

    standings = await data_service.get_standings(db_session)
    assert all(row["played"] == 0 for row in standings)

    await data_service.update_match(db_session, match_id, {"completed": True})
    standings = await data_service.get_standings(db_session)

    assert standings[0]["team_id"] == home.id
    assert standings[0]["points"] == 3
    assert standings[0]["pairs_diff"] == 1
    two_point = await data_service.get_standings(db_session, TWO_POINT_CONVENTION)
    assert two_point[0]["points"] == 2


@pytest.mark.asyncio
async def test_standings_history(db_session, match_id):
    await data_service.update_match(db_session, match_id, {"completed": True})

    history = await data_service.get_standings_history(db_session)

    assert len(history) == 1
    assert history[0]["date"] == "2024-01-08"
    assert [row["position"] for row in history[0]["standings"]] == [1, 2]


@pytest.mark.asyncio
async def test_player_statistics(db_session, two_teams, match_id):
    _, _, home_players, away_players = two_teams
    match = await data_service.get_match(db_session, match_id)
    await data_service.update_match_pair(db_session, match["pairs"][0]["id"], {
        "home_player1_id": home_players[0].id,
        "home_player2_id": home_players[1].id,
        "away_player1_id": away_players[0].id,
        "away_player2_id": away_players[1].id,
        "game1_home_score": 21, "game1_away_score": 15,
        "game2_home_score": 18, "game2_away_score": 21,
        "game3_home_score": 21, "game3_away_score": 19,
    })

    statistics = {s.player_id: s for s in await data_service.get_player_statistics(db_session)}

    alice = statistics[home_players[0].id]
    assert (alice.games_played, alice.games_won, alice.total_points) == (1, 1, 60)
    assert alice.team_name == "Shuttle Stars"
    assert statistics[away_players[0].id].games_lost == 1
    assert statistics[home_players[2].id].games_played == 0


@pytest.mark.asyncio
async def test_empty_league(db_session):
    assert await data_service.get_standings(db_session) == []
    assert await data_service.get_standings_history(db_session) == []
    assert await data_service.get_player_statistics(db_session) == []
    leaders = await data_service.get_statistics_leaders(db_session)
    assert leaders == {"top_scorer": None, "best_win_rate": None, "most_active": None}
