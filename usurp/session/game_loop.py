"""
Game Loop - Drives one session between human moves.

The loop:
1. The human submits a move; the engine validates and applies it
2. While the game waits on an automated seat, that seat's provider is
   asked for one decision (first automated seat in seat order)
3. Each decision is turned into a legal move and applied
4. The loop stops when the game waits on the human or is over
5. On game over, the human's placement is reported once

Automated seats have a deadline. A provider that is late, raises, or
answers nonsense gets the safe default instead. Every decision runs on
its own daemon thread, so a provider that never returns holds nothing
but that thread.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TYPE_CHECKING
import logging
import threading
import time

from ..config import DEFAULT_DECISION_TIMEOUT, DEFAULT_HISTORY_WINDOW
from ..engine_core.action import Move, ErrorCode
from ..engine_core.action_generator import awaiting_input
from ..engine_core.reducer import Reducer
from ..bots import PassDecision, build_view, parse_decision, to_move, safe_default
from ..storage import ResultRecord, ResultRecorder, StorageError

if TYPE_CHECKING:
    from .manager import Session
    from ..bots import Decision, DecisionProvider


logger = logging.getLogger(__name__)


DEFAULT_MAX_STEPS = 1000


class LoopState(Enum):
    """State of the game loop."""
    WAITING_HUMAN = "waiting_human"
    RUNNING_AUTOMATED = "running_automated"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of one call into the loop.

    `automated_moves` lists what the automated seats did, in order.
    """
    success: bool
    loop_state: LoopState

    state_changes: list[str] = field(default_factory=list)
    automated_moves: list[str] = field(default_factory=list)

    errors: list[str] = field(default_factory=list)
    error_code: str | None = None

    winner: str | None = None


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session, recorder=leaderboard)

        result = loop.submit_move(Move.declare("human", ActionKind.TAX))
        if not result.success:
            show_error(result.errors)

        # session.game_state now waits on the human again (or is over)
    """

    def __init__(
        self,
        session: Session,
        recorder: ResultRecorder | None = None,
        decision_timeout: float = DEFAULT_DECISION_TIMEOUT,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        on_change: Callable[[Session], None] | None = None,
    ):
        """
        Args:
            session: The session to drive
            recorder: Where the human's result goes once the game ends
            decision_timeout: Seconds each automated decision may take
            history_window: Log lines shown to providers
            on_change: Called with the session after every call, while
                the session lock is still held (e.g. to persist it)
        """
        self.session = session
        self.recorder = recorder
        self.decision_timeout = decision_timeout
        self.history_window = history_window
        self.on_change = on_change
        self.reducer = Reducer(rng=session.rng)

    @property
    def loop_state(self) -> LoopState:
        if self.session.game_state.is_over:
            return LoopState.GAME_OVER
        if self._next_automated_seat() is None:
            return LoopState.WAITING_HUMAN
        return LoopState.RUNNING_AUTOMATED

    def submit_move(self, move: Move) -> TurnResult:
        """
        Apply a human move, then let the automated seats play.

        A rejected move leaves the game unchanged apart from an alert
        line in its log.
        """
        with self.session.lock:
            human = self.session.human_seat_id
            if move.seat_id != human:
                return TurnResult(
                    success=False,
                    loop_state=self.loop_state,
                    errors=[f"Moves may only be submitted for seat {human}"],
                    error_code=ErrorCode.UNKNOWN_SEAT.value,
                )

            result = self.reducer.apply(self.session.game_state, move)
            self.session.game_state = result.new_state
            if not result.success:
                self._changed()
                return TurnResult(
                    success=False,
                    loop_state=self.loop_state,
                    errors=[result.error],
                    error_code=result.error_code,
                )

            automated = self._run_automated(DEFAULT_MAX_STEPS)
            self._report_if_over()
            self._changed()
            return TurnResult(
                success=True,
                loop_state=self.loop_state,
                state_changes=result.state_changes,
                automated_moves=automated,
                winner=self.session.game_state.winner,
            )

    def run_automated(self, max_steps: int = DEFAULT_MAX_STEPS) -> TurnResult:
        """
        Let automated seats play until the human is needed or the game ends.

        Used at session start and for bot-only games.
        """
        with self.session.lock:
            automated = self._run_automated(max_steps)
            self._report_if_over()
            self._changed()
            return TurnResult(
                success=True,
                loop_state=self.loop_state,
                automated_moves=automated,
                winner=self.session.game_state.winner,
            )

    # -------------------------------------------------------------------------
    # Automated seats
    # -------------------------------------------------------------------------

    def _next_automated_seat(self) -> str | None:
        for seat_id in awaiting_input(self.session.game_state):
            if seat_id != self.session.human_seat_id and seat_id in self.session.providers:
                return seat_id
        return None

    def _run_automated(self, max_steps: int) -> list[str]:
        played: list[str] = []
        for _ in range(max_steps):
            state = self.session.game_state
            if state.is_over:
                break
            seat_id = self._next_automated_seat()
            if seat_id is None:
                break

            decision = self._ask(seat_id, self.session.providers[seat_id])
            move = to_move(state, seat_id, decision)
            if move is None:
                logger.error("Seat %s is awaited but has no legal move in game %s", seat_id, state.game_id)
                break

            result = self.reducer.apply(state, move)
            if not result.success:
                # to_move only returns legal moves; fall back once more.
                logger.error("Legal move rejected for %s: %s", seat_id, result.error)
                move = safe_default(state, seat_id)
                if move is None:
                    break
                result = self.reducer.apply(state, move)
                if not result.success:
                    break
            self.session.game_state = result.new_state
            played.append(move.describe())
        else:
            logger.warning("Stopped after %d automated moves in game %s", max_steps, self.session.game_state.game_id)
        return played

    def _ask(self, seat_id: str, provider: DecisionProvider) -> Decision:
        """One decision from a provider, within the deadline."""
        view = build_view(self.session.game_state, seat_id, history=self.history_window)
        started = time.monotonic()
        outcome: dict[str, object] = {}

        def decide():
            try:
                outcome["decision"] = provider.decide(view)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=decide, name=f"usurp-decide-{seat_id}", daemon=True)
        worker.start()
        worker.join(self.decision_timeout)

        if worker.is_alive():
            # The thread is abandoned; whatever it returns later is ignored.
            logger.warning("%s (%s) missed the %.1fs deadline; passing", seat_id, provider.get_name(), self.decision_timeout)
            return PassDecision(explanation="Timed out")
        if "error" in outcome:
            logger.error("%s (%s) failed to decide; passing", seat_id, provider.get_name(), exc_info=outcome["error"])
            return PassDecision(explanation="Provider error")

        decision = outcome.get("decision")
        if decision is None or isinstance(decision, (str, dict)):
            decision = parse_decision(decision)
        logger.debug("%s decided %r in %.3fs", seat_id, decision, time.monotonic() - started)
        return decision

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def _report_if_over(self):
        """Report the human's placement once, best effort."""
        session = self.session
        state = session.game_state
        if not state.is_over or session.result_reported:
            return
        session.result_reported = True

        human = state.get_player(session.human_seat_id)
        if self.recorder is None or human is None or human.placement is None:
            return

        record = ResultRecord(
            player_name=human.name,
            placement=human.placement,
            num_players=state.num_players,
            duration_seconds=max(0.0, time.time() - session.created_at),
            game_id=state.game_id,
        )
        try:
            self.recorder.record(record)
        except (StorageError, OSError) as e:
            logger.warning("Could not record result for game %s: %s", state.game_id, e)

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self.session)
