"""Reference Trictrac engine (checker movement plus simplified hit scoring).

Covers enough of the game to produce reachable positions for the Trictrac
mapper: dice rolls, two-checker moves, blocking, bearing off, hit scoring
and the hold-or-go choice.

Scoring is reduced to hits: after a roll, every (checker, die) pair that
reaches a field holding a single opponent checker earns the mover
HIT_POINTS (HIT_POINTS_DOUBLE on doubles). Twelve points make a hole, and
winning a hole opens the hold-or-go choice. The marking stages of the full
game are resolved inside ``play`` and never appear on a returned state.

Fields are numbered 1-24 from FIRST's (white's) side. FIRST moves towards
24, SECOND towards 1. Actions are always expressed in the mover's own
numbering so the same action means the same thing for both seats.
"""

from __future__ import annotations

import random
from enum import IntEnum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .base import Outcome, Player

NUM_FIELDS = 24
CHECKERS_PER_PLAYER = 15
HOLES_TO_WIN = 12
BEAR_OFF_FIELD = NUM_FIELDS + 1
LAST_QUARTER_START = 19
POINTS_PER_HOLE = 12
HIT_POINTS = 2
HIT_POINTS_DOUBLE = 4


class TurnStage(IntEnum):
    ROLL_DICE = 0
    ROLL_WAITING = 1
    MARK_POINTS = 2
    HOLD_OR_GO_CHOICE = 3
    MOVE = 4
    MARK_ADV_POINTS = 5


class PlayerStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    points: int = 0
    holes: int = 0
    can_bredouille: bool = True
    can_big_bredouille: bool = True
    dice_roll_count: int = 0


class TrictracAction(BaseModel):
    """Roll, go, or a two-checker move.

    For moves, ``from1`` is moved by the first die of ``dice_order`` and
    ``from2`` by the second; 0 means that die is not used.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["roll", "go", "move"]
    dice_order: bool = True
    from1: int = 0
    from2: int = 0

    @classmethod
    def roll(cls) -> "TrictracAction":
        return cls(kind="roll")

    @classmethod
    def go(cls) -> "TrictracAction":
        return cls(kind="go")

    @classmethod
    def move(cls, dice_order: bool, from1: int, from2: int) -> "TrictracAction":
        return cls(kind="move", dice_order=dice_order, from1=from1, from2=from2)


def _start_fields() -> Tuple[int, ...]:
    fields = [0] * (NUM_FIELDS + 1)
    fields[1] = CHECKERS_PER_PLAYER
    fields[NUM_FIELDS] = -CHECKERS_PER_PLAYER
    return tuple(fields)


def to_relative(player: Player, field: int) -> int:
    """Absolute field number -> ``player``'s own numbering (self-inverse)."""
    return field if player is Player.FIRST else BEAR_OFF_FIELD - field


class TrictracState(BaseModel):
    """Immutable Trictrac snapshot.

    ``fields`` has 25 entries (index 0 unused): positive counts are FIRST's
    checkers, negative counts SECOND's.
    """
    model_config = ConfigDict(frozen=True)

    fields: Tuple[int, ...] = Field(default_factory=_start_fields)
    current_player: Player = Player.FIRST
    turn_stage: TurnStage = TurnStage.ROLL_DICE
    dice: Tuple[int, int] = (0, 0)
    first_stats: PlayerStats = PlayerStats()
    second_stats: PlayerStats = PlayerStats()

    def stats(self, player: Player) -> PlayerStats:
        return self.first_stats if player is Player.FIRST else self.second_stats

    def checkers_at(self, player: Player, relative_field: int) -> int:
        """Number of ``player``'s checkers on a field in ``player``'s numbering."""
        raw = self.fields[to_relative(player, relative_field)]
        return max(raw if player is Player.FIRST else -raw, 0)

    def checkers_on_board(self, player: Player) -> int:
        return sum(self.checkers_at(player, f) for f in range(1, NUM_FIELDS + 1))

    def relative_board(self, player: Player) -> Tuple[List[int], List[int]]:
        """(own, opponent) counts indexed by ``player``'s field numbering."""
        own = [0] * (BEAR_OFF_FIELD + 1)
        opp = [0] * (BEAR_OFF_FIELD + 1)
        for rel in range(1, NUM_FIELDS + 1):
            raw = self.fields[to_relative(player, rel)]
            if player is Player.SECOND:
                raw = -raw
            if raw > 0:
                own[rel] = raw
            elif raw < 0:
                opp[rel] = -raw
        return own, opp

    # -- rules -------------------------------------------------------------

    def is_terminal(self) -> bool:
        return self._winner() is not None

    def _winner(self) -> Optional[Player]:
        for player in (Player.FIRST, Player.SECOND):
            if self.stats(player).holes >= HOLES_TO_WIN:
                return player
            if self.checkers_on_board(player) == 0:
                return player
        return None

    def outcome(self) -> Optional[Outcome]:
        winner = self._winner()
        return None if winner is None else Outcome(winner=winner)

    def legal_actions(self) -> List[TrictracAction]:
        if self.is_terminal():
            return []
        if self.turn_stage == TurnStage.ROLL_DICE:
            return [TrictracAction.roll()]
        if self.turn_stage == TurnStage.MOVE:
            return self._move_actions()
        if self.turn_stage == TurnStage.HOLD_OR_GO_CHOICE:
            return [TrictracAction.go()] + self._move_actions()
        # Marking stages are resolved inside play() and have no player actions
        return []

    def _move_actions(self) -> List[TrictracAction]:
        own, opp = self.relative_board(self.current_player)
        d1, d2 = self.dice
        orders = [(True, d1, d2)]
        if d1 != d2:
            orders.append((False, d2, d1))

        sequences = []
        for order, first_die, second_die in orders:
            firsts = _movable(own, opp, first_die)
            for f1 in firsts:
                after = _apply_single(own, f1, first_die)
                seconds = _movable(after, opp, second_die)
                if seconds:
                    sequences.extend((order, f1, f2) for f2 in seconds)
                else:
                    sequences.append((order, f1, 0))
            if not firsts:
                sequences.extend((order, 0, f2) for f2 in _movable(own, opp, second_die))

        if not sequences:
            return [TrictracAction.move(True, 0, 0)]
        # Both dice must be played whenever possible
        if any(f1 and f2 for _, f1, f2 in sequences):
            sequences = [s for s in sequences if s[1] and s[2]]
        unique = sorted(set(sequences), key=lambda s: (not s[0], s[1], s[2]))
        return [TrictracAction.move(o, f1, f2) for o, f1, f2 in unique]

    def play(
        self,
        action: TrictracAction,
        dice: Optional[Tuple[int, int]] = None,
    ) -> "TrictracState":
        """Apply ``action``. ``dice`` fixes the chance outcome of a roll."""
        if action not in self.legal_actions():
            raise ValueError(f"Illegal Trictrac action {action!r}")

        player = self.current_player
        if action.kind == "roll":
            if dice is None:
                dice = (random.randint(1, 6), random.randint(1, 6))
            stats = self.stats(player)
            updated = stats.model_copy(update={"dice_roll_count": stats.dice_roll_count + 1})
            rolled = self._with_stats(player, updated).model_copy(update={
                "dice": tuple(dice),
                "turn_stage": TurnStage.MOVE,
            })
            return rolled._mark_hits()

        if action.kind == "go":
            return self.model_copy(update={
                "fields": _start_fields(),
                "turn_stage": TurnStage.ROLL_DICE,
                "dice": (0, 0),
            })

        d1, d2 = self.dice
        first_die, second_die = (d1, d2) if action.dice_order else (d2, d1)
        fields = list(self.fields)
        sign = 1 if player is Player.FIRST else -1
        for rel, die in ((action.from1, first_die), (action.from2, second_die)):
            if rel == 0:
                continue
            fields[to_relative(player, rel)] -= sign
            dest = rel + die
            if dest < BEAR_OFF_FIELD:
                fields[to_relative(player, dest)] += sign

        return self.model_copy(update={
            "fields": tuple(fields),
            "current_player": player.other(),
            "turn_stage": TurnStage.ROLL_DICE,
            "dice": (0, 0),
        })

    def _count_hits(self) -> int:
        own, opp = self.relative_board(self.current_player)
        hits = 0
        for die in set(self.dice):
            for field in range(1, NUM_FIELDS + 1):
                dest = field + die
                if own[field] and dest < BEAR_OFF_FIELD and opp[dest] == 1:
                    hits += 1
        return hits

    def _mark_hits(self) -> "TrictracState":
        """Score the rolled dice for the mover; a won hole opens hold-or-go."""
        hits = self._count_hits()
        if not hits:
            return self

        player = self.current_player
        d1, d2 = self.dice
        stats = self.stats(player)
        earned = hits * (HIT_POINTS_DOUBLE if d1 == d2 else HIT_POINTS)
        holes_won, points = divmod(stats.points + earned, POINTS_PER_HOLE)
        scored = stats.model_copy(update={"points": points, "holes": stats.holes + holes_won})
        # Scoring ends the opponent's bredouille run
        opponent = self.stats(player.other()).model_copy(update={"can_bredouille": False})

        state = self._with_stats(player, scored)._with_stats(player.other(), opponent)
        if holes_won and not state.is_terminal():
            state = state.model_copy(update={"turn_stage": TurnStage.HOLD_OR_GO_CHOICE})
        return state

    def _with_stats(self, player: Player, stats: PlayerStats) -> "TrictracState":
        key = "first_stats" if player is Player.FIRST else "second_stats"
        return self.model_copy(update={key: stats})

    def swap_players(self) -> "TrictracState":
        """Same position with the two seats exchanged and the board mirrored."""
        fields = [0] * (NUM_FIELDS + 1)
        for f in range(1, NUM_FIELDS + 1):
            fields[BEAR_OFF_FIELD - f] = -self.fields[f]
        return self.model_copy(update={
            "fields": tuple(fields),
            "current_player": self.current_player.other(),
            "first_stats": self.second_stats,
            "second_stats": self.first_stats,
        })


def _movable(own: List[int], opp: List[int], die: int) -> List[int]:
    """Fields (mover numbering) from which a checker can move by ``die``."""
    can_bear_off = all(own[f] == 0 for f in range(1, LAST_QUARTER_START))
    result = []
    for f in range(1, NUM_FIELDS + 1):
        if own[f] == 0:
            continue
        dest = f + die
        if dest < BEAR_OFF_FIELD:
            if opp[dest] == 0:
                result.append(f)
        elif dest == BEAR_OFF_FIELD and can_bear_off:
            result.append(f)
    return result


def _apply_single(own: List[int], field: int, die: int) -> List[int]:
    after = list(own)
    after[field] -= 1
    dest = field + die
    if dest < BEAR_OFF_FIELD:
        after[dest] += 1
    return after
