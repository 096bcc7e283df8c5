"""Unit tests for post-game statistics."""
import pytest

from liveticker.providers.models import Lineup
from liveticker.services.stats import NOBODY, compute_game_stats, extract_game_stats, find_top_scorer
from tests.conftest import make_event, make_lineup

TEAM_NAMES = {"home": "HSG Nord", "guest": "TV Süd"}


@pytest.fixture
def lineup():
    return Lineup.model_validate(make_lineup())


@pytest.mark.unit
class TestTopScorer:
    """Test find_top_scorer."""

    def test_tie_lists_all(self, lineup):
        """✅ Tied scorers joined with '&', first given name only."""
        events = [
            make_event(1, "Goal", score="1:0", message="Goal by Ana Walk (7.)", team="Home"),
            make_event(2, "Goal", score="2:0", message="Goal by Lea Marie Roth (11.)", team="Home"),
            make_event(3, "SevenMeterGoal", score="3:0", message="7m goal by Ana Walk (7.)", team="Home"),
            make_event(4, "Goal", score="4:0", message="Goal by Lea Marie Roth (11.)", team="Home"),
        ]

        assert find_top_scorer(lineup.home, events, "Home") == "Ana Walk & Lea Roth (2 goals)"

    def test_unknown_number(self, lineup):
        """✅ Scorer missing from the lineup shown by number."""
        events = [make_event(1, "Goal", score="0:1", message="Goal by No. 23.", team="Away")]

        assert find_top_scorer(lineup.away, events, "Away") == "No. 23 (1 goals)"

    def test_placeholder_names(self):
        """✅ 'N.N.' first names are ignored."""
        players = Lineup.model_validate({"home": [{"number": 9, "firstname": "N.N.", "lastname": "Kurz"}]}).home
        events = [make_event(1, "Goal", score="1:0", message="Goal (9.)", team="Home")]

        assert find_top_scorer(players, events, "Home") == "Kurz (1 goals)"

    def test_no_goals(self, lineup):
        """✅ No goals for the side → Nobody."""
        events = [make_event(1, "Goal", score="1:0", message="Goal by Ana Walk (7.)", team="Home")]

        assert find_top_scorer(lineup.away, events, "Away") == NOBODY


@pytest.mark.unit
class TestGameStats:
    """Test counting and the statistics message."""

    def test_counters_per_side(self, lineup):
        """✅ Cards, suspensions and 7m throws counted per side."""
        events = [
            make_event(1, "SevenMeterGoal", score="1:0", message="(7.)", team="Home"),
            make_event(2, "SevenMeterMissed", team="Home"),
            make_event(3, "TwoMinutePenalty", team="Away"),
            make_event(4, "TwoMinutePenalty", team="Away"),
            make_event(5, "Warning", team="Home"),
            make_event(6, "Disqualification", team="Away"),
            make_event(7, "DisqualificationWithReport", team="Away"),
        ]

        stats = compute_game_stats(lineup, TEAM_NAMES, events)

        assert stats.home.seven_meters == "1 of 2"
        assert stats.home.yellow_cards == 1
        assert stats.guest.penalties == 2
        assert stats.guest.red_cards == 1
        assert stats.guest.blue_cards == 1
        assert stats.home.top_scorer == "Ana Walk (1 goals)"

    def test_message_layout(self, lineup):
        """✅ Blue cards only listed when given."""
        events = [make_event(1, "DisqualificationWithReport", team="Away")]

        message = extract_game_stats(lineup, TEAM_NAMES, events)

        assert message.startswith("📊 *Game statistics:*")
        assert "*HSG Nord:*" in message
        assert "*TV Süd:*" in message
        assert message.count("Blue cards") == 1
        assert message.endswith("  - Blue cards: 1")

    def test_missing_lineup(self):
        """✅ No lineup → no statistics."""
        events = [make_event(1, "Goal", score="1:0", team="Home")]

        assert extract_game_stats(None, TEAM_NAMES, events) == ""
        assert extract_game_stats(Lineup(), TEAM_NAMES, events) == ""

    def test_missing_events(self, lineup):
        """✅ No events → no statistics."""
        assert extract_game_stats(lineup, TEAM_NAMES, []) == ""
