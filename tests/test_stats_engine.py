"""
Tests for scorecard statistics computed from the ball history.
"""
import pytest

from crease.engine import stats_engine
from crease.engine.ball_processor import DeliveryInput, ExtrasType, process_delivery
from crease.engine.innings_manager import initial_state
from crease.models.match import WicketKind
from tests.factories import make_ball, make_meta


class TestBatsmanStats:
    def test_runs_balls_and_boundaries(self):
        balls = [
            make_ball(1, 4),
            make_ball(2, 0),
            make_ball(3, 6),
            make_ball(4, 1, is_wide=True, runs_by_batsman=0, extra_runs=1),
            make_ball(5, 2),
        ]
        stats = stats_engine.batsman_stats(balls, "Rohit")

        assert stats.runs == 12
        assert stats.balls == 4  # Wide not faced
        assert stats.fours == 1
        assert stats.sixes == 1
        assert stats.strike_rate == 300.0
        assert not stats.is_out
        assert stats.how_out is None

    def test_no_ball_runs_count_but_ball_does_not(self):
        balls = [make_ball(1, 5, is_no_ball=True, runs_by_batsman=4, extra_runs=1)]
        stats = stats_engine.batsman_stats(balls, "Rohit")

        assert stats.runs == 4
        assert stats.balls == 0
        assert stats.fours == 1

    def test_strike_rate_zero_without_balls(self):
        stats = stats_engine.batsman_stats([], "Rohit")

        assert stats.balls == 0
        assert stats.strike_rate == 0

    def test_strike_rate_rounded(self):
        balls = [make_ball(1, 1), make_ball(2, 0, striker="Rohit"), make_ball(3, 0)]
        stats = stats_engine.batsman_stats(balls, "Rohit")

        assert stats.strike_rate == 33.33

    @pytest.mark.parametrize("kind, fielder, expected", [
        (WicketKind.BOWLED, None, "b Starc"),
        (WicketKind.CAUGHT, "Smith", "c Smith b Starc"),
        (WicketKind.CAUGHT, None, "c & b Starc"),
        (WicketKind.LBW, None, "lbw b Starc"),
        (WicketKind.STUMPED, "Carey", "st Carey b Starc"),
        (WicketKind.STUMPED, None, "st b Starc"),
        (WicketKind.RUN_OUT, "Head", "run out (Head)"),
        (WicketKind.RUN_OUT, None, "run out"),
        (WicketKind.HIT_WICKET, None, "hit wicket b Starc"),
    ])
    def test_dismissal_text(self, kind, fielder, expected):
        balls = [make_ball(1, is_wicket=True, wicket_kind=kind, player_out="Rohit", fielder=fielder)]
        stats = stats_engine.batsman_stats(balls, "Rohit")

        assert stats.is_out
        assert stats.how_out == expected

    def test_unknown_dismissal_is_out(self):
        assert stats_engine.dismissal_text(None, "Starc") == "out"

    def test_non_striker_run_out(self):
        balls = [make_ball(1, is_wicket=True, wicket_kind=WicketKind.RUN_OUT, player_out="Gill", fielder="Smith")]
        stats = stats_engine.batsman_stats(balls, "Gill")

        assert stats.is_out
        assert stats.how_out == "run out (Smith)"
        assert stats.balls == 0


class TestBowlerStats:
    def test_figures(self):
        balls = [
            make_ball(1, 4),
            make_ball(2, 1, is_wide=True, extra_runs=1, ball_in_over=2),
            make_ball(3, 0, is_wicket=True, wicket_kind=WicketKind.BOWLED, player_out="Rohit", ball_in_over=2),
            make_ball(4, 2, is_no_ball=True, runs_by_batsman=1, extra_runs=1, ball_in_over=3),
            make_ball(5, 0, is_wicket=True, wicket_kind=WicketKind.RUN_OUT, player_out="Gill", ball_in_over=3),
        ]
        stats = stats_engine.bowler_stats(balls, "Starc")

        assert stats.overs == 0
        assert stats.balls == 3
        assert stats.runs == 7
        assert stats.wickets == 1  # Run out not credited
        assert stats.wides == 1
        assert stats.no_balls == 1
        assert stats.economy == 14.0

    def test_byes_charged_to_bowler(self):
        balls = [make_ball(1, 4, is_bye=True), make_ball(2, 1, is_leg_bye=True)]
        stats = stats_engine.bowler_stats(balls, "Starc")

        assert stats.runs == 5

    def test_maiden(self):
        balls = [make_ball(n) for n in range(1, 7)]
        stats = stats_engine.bowler_stats(balls, "Starc")

        assert stats.overs == 1
        assert stats.balls == 0
        assert stats.maidens == 1
        assert stats.economy == 0

    def test_wide_spoils_maiden(self):
        balls = [make_ball(n) for n in range(1, 7)]
        balls.append(make_ball(7, 1, is_wide=True, extra_runs=1, over_number=0, ball_in_over=6))
        stats = stats_engine.bowler_stats(balls, "Starc")

        assert stats.maidens == 0

    def test_economy_zero_without_balls(self):
        stats = stats_engine.bowler_stats([make_ball(1, 1, is_wide=True, extra_runs=1)], "Starc")

        assert stats.balls == 0
        assert stats.economy == 0

    def test_other_bowlers_ignored(self):
        balls = [make_ball(1, 4, bowler="Cummins")]
        stats = stats_engine.bowler_stats(balls, "Starc")

        assert stats.runs == 0


class TestAllStats:
    def test_only_players_who_batted(self):
        balls = [
            make_ball(1, 1),
            make_ball(2, 0, striker="Gill", non_striker="Rohit"),
        ]
        stats = stats_engine.all_batsman_stats(balls, ["Rohit", "Gill", "Kohli"])

        assert set(stats) == {"Rohit", "Gill"}

    def test_dismissed_off_a_wide_is_listed(self):
        balls = [make_ball(1, is_wide=True, extra_runs=1, runs=1, is_wicket=True,
                           wicket_kind=WicketKind.STUMPED, player_out="Rohit")]
        stats = stats_engine.all_batsman_stats(balls, ["Rohit", "Gill"])

        assert list(stats) == ["Rohit"]
        assert stats["Rohit"].balls == 0

    def test_only_bowlers_with_legal_balls(self):
        balls = [
            make_ball(1, 0, bowler="Starc"),
            make_ball(2, 1, is_wide=True, extra_runs=1, bowler="Cummins"),
        ]
        stats = stats_engine.all_bowler_stats(balls, ["Starc", "Cummins", "Zampa"])

        assert list(stats) == ["Starc"]


class TestFallOfWickets:
    def test_cumulative_score(self):
        balls = [
            make_ball(1, 4),
            make_ball(2, 0, is_wicket=True, wicket_kind=WicketKind.CAUGHT, player_out="Rohit", fielder="Smith"),
            make_ball(3, 2, striker="Kohli"),
            make_ball(4, 1, is_wide=True, extra_runs=1, striker="Kohli"),
            make_ball(5, 0, striker="Kohli", is_wicket=True, wicket_kind=WicketKind.LBW, player_out="Kohli"),
        ]
        fow = stats_engine.fall_of_wickets(balls)

        assert [(w.wicket_number, w.player_out, w.score) for w in fow] == [(1, "Rohit", 4), (2, "Kohli", 7)]
        assert fow[0].fielder == "Smith"
        assert fow[0].wicket_kind == "caught"
        assert fow[0].over_display == "0.2"
        assert fow[1].wicket_kind == "lbw"
        assert fow[1].fielder is None


class TestPartnerships:
    def test_segments_by_pair(self):
        balls = [
            make_ball(1, 1),
            make_ball(2, 4, striker="Gill", non_striker="Rohit"),
            make_ball(3, 0, striker="Gill", non_striker="Rohit", is_wicket=True, player_out="Gill",
                      wicket_kind=WicketKind.BOWLED),
            make_ball(4, 2, striker="Kohli", non_striker="Rohit"),
            make_ball(5, 1, is_wide=True, extra_runs=1, striker="Kohli", non_striker="Rohit"),
        ]
        parts = stats_engine.partnerships(balls)

        assert len(parts) == 2
        first, second = parts
        assert (first.batsman1, first.batsman2) == ("Rohit", "Gill")
        assert first.runs == 5
        assert first.balls == 3
        assert first.start_wicket == 0
        assert first.end_wicket == 1
        assert not first.is_active

        assert (second.batsman1, second.batsman2) == ("Kohli", "Rohit")
        assert second.runs == 3
        assert second.balls == 1
        assert second.start_wicket == 1
        assert second.end_wicket is None
        assert second.is_active

    def test_no_balls_no_partnerships(self):
        assert stats_engine.partnerships([]) == []


class TestExtras:
    def test_breakdown(self):
        balls = [
            make_ball(1, 2, is_wide=True, extra_runs=1),
            make_ball(2, 5, is_no_ball=True, runs_by_batsman=4, extra_runs=1),
            make_ball(3, 1, is_no_ball=True, extra_runs=1),
            make_ball(4, 4, is_bye=True),
            make_ball(5, 1, is_leg_bye=True),
            make_ball(6, 6),
        ]
        extras = stats_engine.extras_breakdown(balls)

        assert extras.wides == 2
        assert extras.no_balls == 2  # Flat one per no-ball
        assert extras.byes == 4
        assert extras.leg_byes == 1
        assert extras.total == 9


class TestRates:
    def test_run_rate(self):
        assert stats_engine.run_rate(45, 30) == 9.0
        assert stats_engine.run_rate(10, 4) == 15.0
        assert stats_engine.run_rate(0, 0) == 0

    def test_required_run_rate(self):
        assert stats_engine.required_run_rate(150, 101, 30) == 9.8
        assert stats_engine.required_run_rate(150, 100, 0) == 0
        assert stats_engine.required_run_rate(150, 150, 12) == 0
        assert stats_engine.required_run_rate(150, 160, 12) == 0

    def test_overs_display(self):
        assert stats_engine.overs_display(0) == "0.0"
        assert stats_engine.overs_display(20) == "3.2"
        assert stats_engine.overs_display(120) == "20.0"


class TestReplay:
    """Replaying recorded balls rebuilds the live state"""

    def _play(self, deliveries, overs=20):
        state = initial_state(["Rohit", "Gill", "Kohli"])
        state.current_striker, state.current_non_striker, state.current_bowler = "Rohit", "Gill", "Starc"
        meta = make_meta(overs_per_innings=overs)
        history = [(state, meta)]
        balls = []
        for number, delivery in enumerate(deliveries, 1):
            if state.current_bowler is None:
                state = state.model_copy(update={"current_bowler": "Cummins" if number > 6 else "Starc"})
            if state.current_striker is None:
                state = state.model_copy(update={"current_striker": "Kohli"})
            result = process_delivery(
                state, meta, delivery, number,
                state.current_striker, state.current_non_striker, state.current_bowler,
            )
            balls.append(result.ball)
            state, meta = result.new_state, result.new_meta
            history.append((state, meta))
        return balls, history

    def test_replay_reproduces_every_prefix(self):
        deliveries = [
            DeliveryInput(runs=1),
            DeliveryInput(extras_type=ExtrasType.NOBALL, runs=2),
            DeliveryInput(runs=4),
            DeliveryInput(is_wicket=True, wicket_kind=WicketKind.CAUGHT, fielder="Smith"),
            DeliveryInput(extras_type=ExtrasType.WIDE),
            DeliveryInput(runs=1, extras_type=ExtrasType.LEGBYE),
            DeliveryInput(runs=3),
            DeliveryInput(runs=1),
        ]
        balls, history = self._play(deliveries)
        _, start_meta = history[0]

        for n in range(1, len(balls) + 1):
            replayed, _ = stats_engine.replay_innings(balls[:n], start_meta, initial_state(["Rohit", "Gill", "Kohli"]))
            assert replayed == history[n][0]

    def test_innings_balls_filter(self):
        balls = [make_ball(1), make_ball(2, innings=2)]

        assert [b.ball_number for b in stats_engine.innings_balls(balls, 2)] == [2]
