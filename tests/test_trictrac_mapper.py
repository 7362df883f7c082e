"""Tests for the Trictrac mapper layout and the reference move generator."""

import numpy as np
import pytest

from kzmap.errors import IllegalActionError, UnmappableActionError
from kzmap.games.base import Player
from kzmap.games.trictrac import PlayerStats, TrictracAction, TrictracState, TurnStage
from kzmap.mapping import TrictracStdMapper, get_mapper
from kzmap.mapping.trictrac import ACTION_SPACE_SIZE, GO_INDEX, MOVE_BASE, ROLL_INDEX


@pytest.fixture
def mapper() -> TrictracStdMapper:
    return get_mapper("trictrac")


def _rolled(dice) -> TrictracState:
    return TrictracState().play(TrictracAction.roll(), dice=dice)


class TestTrictracLayout:
    """Action-space arithmetic."""

    def test_sizes(self, mapper) -> None:
        assert ACTION_SPACE_SIZE == 1252
        assert mapper.action_space_size == 1252
        assert mapper.input_bool_shape == (30, 24, 1)
        assert mapper.input_scalar_count == 13

    @pytest.mark.parametrize(
        "action, index",
        [
            (TrictracAction.roll(), ROLL_INDEX),
            (TrictracAction.go(), GO_INDEX),
            (TrictracAction.move(True, 0, 0), MOVE_BASE),
            (TrictracAction.move(True, 1, 1), 28),
            (TrictracAction.move(False, 3, 5), 707),
            (TrictracAction.move(False, 24, 24), 1251),
        ],
    )
    def test_known_indices(self, mapper, action, index) -> None:
        assert mapper.action_to_index(action) == index
        assert mapper.decode_index(index) == action

    @pytest.mark.parametrize(
        "action",
        [
            TrictracAction(kind="roll", from1=3),
            TrictracAction(kind="go", dice_order=False),
            TrictracAction.move(True, 25, 1),
            TrictracAction.move(True, 1, -1),
        ],
    )
    def test_malformed_actions_unmappable(self, mapper, action) -> None:
        with pytest.raises(UnmappableActionError):
            mapper.action_to_index(action)


class TestTrictracMoves:
    """Move generation of the reference engine as seen through the mapper."""

    def test_start_only_rolls(self, mapper) -> None:
        assert mapper.legal_indices(TrictracState()) == [ROLL_INDEX]

    def test_both_dice_orders_enumerated(self) -> None:
        state = _rolled((3, 5))
        assert state.turn_stage == TurnStage.MOVE
        assert state.legal_actions() == [
            TrictracAction.move(True, 1, 1),
            TrictracAction.move(True, 1, 4),
            TrictracAction.move(False, 1, 1),
            TrictracAction.move(False, 1, 6),
        ]

    def test_doubles_use_one_order(self) -> None:
        state = _rolled((2, 2))
        assert all(a.dice_order for a in state.legal_actions())

    def test_blocked_position_yields_empty_move(self, mapper) -> None:
        fields = [0] * 25
        fields[1] = 1
        fields[2] = -7
        fields[3] = -8
        state = TrictracState(
            fields=tuple(fields), turn_stage=TurnStage.MOVE, dice=(1, 2),
        )
        assert state.legal_actions() == [TrictracAction.move(True, 0, 0)]
        assert mapper.index_to_action(MOVE_BASE, state) == TrictracAction.move(True, 0, 0)

    def test_roll_slot_illegal_while_moving(self, mapper) -> None:
        with pytest.raises(IllegalActionError):
            mapper.index_to_action(ROLL_INDEX, _rolled((3, 5)))


class TestTrictracEncoding:
    """Plane and scalar contents."""

    def test_start_position_planes(self, mapper) -> None:
        bools = mapper.encode(TrictracState()).bools
        # 15 own checkers on field 1, 15 opponent checkers on field 24
        assert bools[14, 0, 0]
        assert bools[29, 23, 0]
        assert bools.sum() == 2

    def test_start_position_scalars(self, mapper) -> None:
        scalars = mapper.encode(TrictracState()).scalars
        expected = np.zeros(13, dtype=np.float32)
        expected[[5, 6, 10, 11]] = 1.0
        np.testing.assert_array_equal(scalars, expected)

    def test_rolled_dice_and_stage(self, mapper) -> None:
        state = _rolled((3, 5))
        mover = mapper.encode(state, Player.FIRST).scalars
        assert mover[0] == pytest.approx(4 / 5)
        assert mover[1] == pytest.approx(3 / 6)
        assert mover[2] == pytest.approx(5 / 6)
        assert mover[7] == 1.0
        assert mover[12] == 0.0

        other = mapper.encode(state, Player.SECOND).scalars
        assert other[7] == 0.0
        assert other[12] == 1.0

    def test_planes_after_move(self, mapper) -> None:
        state = _rolled((3, 5)).play(TrictracAction.move(True, 1, 4))
        assert state.current_player == Player.SECOND
        first_view = mapper.encode(state, Player.FIRST).bools
        assert first_view[13, 0, 0]
        assert first_view[0, 8, 0]

        # SECOND sees FIRST's checkers mirrored onto its own numbering
        second_view = mapper.encode(state, Player.SECOND).bools
        assert second_view[15 + 13, 23, 0]
        assert second_view[15, 15, 0]
        assert second_view[14, 0, 0]

    def test_player_stats_scalars(self, mapper) -> None:
        state = TrictracState(
            first_stats=PlayerStats(points=4, holes=2, can_bredouille=False),
            second_stats=PlayerStats(points=7, holes=3, can_big_bredouille=False),
        )
        first = mapper.encode(state, Player.FIRST).scalars
        assert first[3:8].tolist() == [4.0, 2.0, 0.0, 1.0, 0.0]
        assert first[8:13].tolist() == [7.0, 3.0, 1.0, 0.0, 0.0]
        second = mapper.encode(state, Player.SECOND).scalars
        assert second[3:8].tolist() == first[8:13].tolist()


def _hit_position(first_points: int) -> TrictracState:
    """FIRST has 15 checkers on field 1, SECOND a lone checker on field 4."""
    fields = [0] * 25
    fields[1] = 15
    fields[4] = -1
    fields[24] = -14
    return TrictracState(fields=tuple(fields), first_stats=PlayerStats(points=first_points))


class TestTrictracStart:
    """The opening position is live for both seats."""

    def test_start_is_not_terminal(self) -> None:
        state = TrictracState()
        assert state.checkers_on_board(Player.FIRST) == 15
        assert state.checkers_on_board(Player.SECOND) == 15
        assert not state.is_terminal()
        assert state.outcome() is None
        assert state.legal_actions() == [TrictracAction.roll()]

    def test_opponent_checkers_not_counted(self) -> None:
        state = _hit_position(0)
        assert state.checkers_at(Player.FIRST, 4) == 0
        assert state.checkers_at(Player.SECOND, 21) == 1

    def test_bearing_off_everything_wins(self) -> None:
        fields = [0] * 25
        fields[24] = -15
        state = TrictracState(fields=tuple(fields))
        assert state.is_terminal()
        assert state.outcome().winner == Player.FIRST

    def test_random_playout_advances(self, playout_factory) -> None:
        states = playout_factory("trictrac", seed=0, max_plies=40)
        assert len(states) == 41
        assert any(s.turn_stage == TurnStage.MOVE for s in states)
        assert any(s.current_player == Player.SECOND for s in states)


class TestTrictracScoring:
    """Hit scoring and the hold-or-go choice."""

    def test_hit_scores_points(self) -> None:
        state = _hit_position(0).play(TrictracAction.roll(), dice=(3, 5))
        assert state.turn_stage == TurnStage.MOVE
        assert state.first_stats.points == 2
        assert state.second_stats.can_bredouille is False

    def test_doubles_score_double(self) -> None:
        state = _hit_position(0).play(TrictracAction.roll(), dice=(3, 3))
        assert state.first_stats.points == 4

    def test_winning_a_hole_offers_go(self, mapper) -> None:
        state = _hit_position(10).play(TrictracAction.roll(), dice=(3, 5))
        assert state.turn_stage == TurnStage.HOLD_OR_GO_CHOICE
        assert state.first_stats.holes == 1
        assert state.first_stats.points == 0
        assert state.legal_actions() == [
            TrictracAction.go(),
            TrictracAction.move(False, 1, 6),
        ]
        assert mapper.legal_indices(state)[0] == GO_INDEX
        assert mapper.index_to_action(GO_INDEX, state) == TrictracAction.go()

        after = state.play(mapper.index_to_action(GO_INDEX, state))
        assert after.fields == TrictracState().fields
        assert after.turn_stage == TurnStage.ROLL_DICE
        assert after.current_player == Player.FIRST
        assert after.first_stats.holes == 1

    def test_holding_plays_a_move(self, mapper) -> None:
        state = _hit_position(10).play(TrictracAction.roll(), dice=(3, 5))
        hold_index = mapper.action_to_index(TrictracAction.move(False, 1, 6))
        after = state.play(mapper.index_to_action(hold_index, state))
        assert after.current_player == Player.SECOND
        assert after.checkers_at(Player.FIRST, 9) == 1

    def test_hold_or_go_encodes_stage(self, mapper) -> None:
        state = _hit_position(10).play(TrictracAction.roll(), dice=(3, 5))
        scalars = mapper.encode(state).scalars
        assert scalars[0] == pytest.approx(int(TurnStage.HOLD_OR_GO_CHOICE) / 5)
        assert scalars[4] == 1.0

    def test_twelfth_hole_ends_the_game(self) -> None:
        state = _hit_position(10).model_copy(
            update={"first_stats": PlayerStats(points=10, holes=11)}
        )
        after = state.play(TrictracAction.roll(), dice=(3, 5))
        assert after.is_terminal()
        assert after.outcome().winner == Player.FIRST
        assert after.legal_actions() == []
