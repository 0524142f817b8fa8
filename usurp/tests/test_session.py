"""
Tests for sessions and the game loop.
"""

import threading
import time

import pytest

from ..engine_core.action import ActionKind, ErrorCode, Move
from ..engine_core.cards import Role
from ..bots import DecisionProvider, PassivePolicy
from ..session import GameLoop, LoopState, Session, SessionManager, SessionState, HUMAN_SEAT_ID
from ..storage import FileSessionStore, MemoryLeaderboard, ResultRecorder, StorageError
from .conftest import build_state


class SlowPolicy(DecisionProvider):
    def decide(self, view):
        time.sleep(0.5)
        return {"type": "ACTION", "payload": {"action": "Tax"}}


class StuckPolicy(DecisionProvider):
    """Never answers until `release` is set."""

    def __init__(self, release):
        self.release = release

    def decide(self, view):
        self.release.wait()
        return {"type": "PASS"}


class BrokenPolicy(DecisionProvider):
    def decide(self, view):
        raise RuntimeError("provider crashed")


class RawTaxPolicy(DecisionProvider):
    """Answers with the raw wire format, as a remote provider would."""

    def decide(self, view):
        if view.is_my_turn:
            return {"type": "ACTION", "payload": {"action": "Tax"}, "thoughtProcess": "Duke, honestly"}
        return '{"type": "PASS"}'


class BrokenRecorder(ResultRecorder):
    def record(self, result):
        raise StorageError("disk full")

    def top(self, limit=10):
        return []


def _one_bot_session(manager, provider, seed=7):
    session = manager.create_session(human_name="Ada", num_opponents=1, seed=seed)
    session.providers["bot_1"] = provider
    return session


def _endgame_session(provider=None) -> Session:
    """Human on 7 coins facing a bot with one card left."""
    state = build_state(
        {
            HUMAN_SEAT_ID: [Role.DUKE, Role.CAPTAIN],
            "bot_1": [Role.CONTESSA, Role.ASSASSIN],
        },
        coins={HUMAN_SEAT_ID: 7},
        current=HUMAN_SEAT_ID,
        revealed={"bot_1": [0]},
    )
    return Session(
        session_id="endgame",
        game_state=state,
        created_at=time.time(),
        providers={"bot_1": provider or PassivePolicy()},
    )


class TestSessionManager:
    """Tests for creating, saving and ending sessions."""

    def test_create_session(self):
        manager = SessionManager()
        session = manager.create_session(human_name="Ada", num_opponents=3, personalities=["skeptic"], seed=1)

        state = session.game_state
        assert state.num_players == 4
        assert state.current_player.player_id == HUMAN_SEAT_ID
        assert state.get_player(HUMAN_SEAT_ID).name == "Ada"
        assert [p.name for p in state.players[1:]] == ["Skeptic Bot 1", "Skeptic Bot 2", "Skeptic Bot 3"]
        assert set(session.providers) == {"bot_1", "bot_2", "bot_3"}
        assert session.is_human_turn()

    def test_create_session_is_saved(self):
        manager = SessionManager()
        session = manager.create_session(seed=1)

        record = manager.store.load(session.session_id)

        assert record["human_seat_id"] == HUMAN_SEAT_ID
        assert record["game"]["game_id"] == session.session_id
        assert record["providers"]["bot_1"]["kind"] == "heuristic"

    @pytest.mark.parametrize("count", [0, 6])
    def test_opponent_count_bounds(self, count):
        with pytest.raises(ValueError):
            SessionManager().create_session(num_opponents=count)

    def test_unknown_personality(self):
        with pytest.raises(ValueError):
            SessionManager().create_session(personalities=["grumpy"])

    def test_restore_from_file_store(self, tmp_path):
        manager = SessionManager(FileSessionStore(tmp_path))
        session = manager.create_session(seed=11)
        GameLoop(session).submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))
        manager.save(session)

        restored = SessionManager(FileSessionStore(tmp_path)).get_session(session.session_id)

        assert restored is not session
        assert restored.game_state == session.game_state
        assert restored.human_seat_id == HUMAN_SEAT_ID
        assert restored.providers["bot_1"].get_name() == session.providers["bot_1"].get_name()

    def test_end_session(self):
        manager = SessionManager()
        session = manager.create_session(seed=1)

        assert manager.end_session(session.session_id, reason="quit")
        assert session.status == SessionState.ABANDONED
        assert manager.get_session(session.session_id) is None
        assert not manager.end_session(session.session_id)

    def test_list_and_cleanup(self):
        manager = SessionManager()
        live = manager.create_session(seed=1)
        done = manager.create_session(seed=2)
        done.status = SessionState.GAME_OVER
        done.created_at -= 7200

        assert manager.list_active_sessions() == [live.session_id]
        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == [done.session_id]
        assert manager.get_session(done.session_id) is None
        assert manager.get_session(live.session_id) is live


class TestGameLoop:
    """Tests for driving automated seats."""

    def test_human_tax_with_passive_bots(self):
        manager = SessionManager()
        session = manager.create_session(num_opponents=2, seed=3)
        session.providers = {"bot_1": PassivePolicy(), "bot_2": PassivePolicy()}
        loop = GameLoop(session)

        result = loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.TAX))

        assert result.success
        assert result.loop_state == LoopState.WAITING_HUMAN
        state = session.game_state
        assert state.get_player(HUMAN_SEAT_ID).coins == 5
        assert state.get_player("bot_1").coins == 3
        assert state.get_player("bot_2").coins == 3
        assert state.current_player.player_id == HUMAN_SEAT_ID
        assert len(result.automated_moves) == 4

    def test_rejected_move_changes_nothing(self):
        session = _one_bot_session(SessionManager(), PassivePolicy())
        before = session.game_state

        result = GameLoop(session).submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.COUP, "bot_1"))

        assert not result.success
        assert result.error_code == ErrorCode.INSUFFICIENT_COINS.value
        assert session.game_state.players == before.players
        assert session.game_state.phase == before.phase

    def test_moves_for_other_seats_rejected(self):
        session = _one_bot_session(SessionManager(), PassivePolicy())

        result = GameLoop(session).submit_move(Move.declare("bot_1", ActionKind.INCOME))

        assert not result.success
        assert result.error_code == ErrorCode.UNKNOWN_SEAT.value

    def test_slow_provider_gets_default(self):
        session = _one_bot_session(SessionManager(), SlowPolicy())
        loop = GameLoop(session, decision_timeout=0.05)

        loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

        assert session.game_state.get_player("bot_1").coins == 3
        assert session.game_state.current_player.player_id == HUMAN_SEAT_ID

    def test_failing_provider_gets_default(self):
        session = _one_bot_session(SessionManager(), BrokenPolicy())

        result = GameLoop(session).submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

        assert result.success
        assert session.game_state.get_player("bot_1").coins == 3

    def test_raw_decisions_are_parsed(self):
        session = _one_bot_session(SessionManager(), RawTaxPolicy())
        loop = GameLoop(session)

        loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

        # The bot claimed Duke; the human may now respond.
        state = session.game_state
        assert state.pending_action.action == ActionKind.TAX
        assert state.waiting_for_response_from == (HUMAN_SEAT_ID,)
        assert loop.loop_state == LoopState.WAITING_HUMAN

        loop.submit_move(Move.pass_(HUMAN_SEAT_ID))

        assert session.game_state.get_player("bot_1").coins == 5

    def test_result_reported_once(self):
        session = _endgame_session()
        leaderboard = MemoryLeaderboard()
        loop = GameLoop(session, recorder=leaderboard)

        result = loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.COUP, "bot_1"))

        assert result.success
        assert result.loop_state == LoopState.GAME_OVER
        assert result.winner == HUMAN_SEAT_ID
        assert session.result_reported

        loop.run_automated()

        entries = leaderboard.top()
        assert len(entries) == 1
        assert entries[0].placement == 1
        assert entries[0].num_players == 2
        assert entries[0].player_name == "HUMAN"

    def test_recorder_failure_is_not_fatal(self):
        session = _endgame_session()

        result = GameLoop(session, recorder=BrokenRecorder()).submit_move(
            Move.declare(HUMAN_SEAT_ID, ActionKind.COUP, "bot_1")
        )

        assert result.success
        assert session.game_state.is_over
        assert session.result_reported

    def test_moves_after_game_over(self):
        session = _endgame_session()
        loop = GameLoop(session)
        loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.COUP, "bot_1"))

        result = loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

        assert not result.success
        assert result.error_code == ErrorCode.GAME_OVER.value

    def test_stuck_providers_do_not_starve_other_sessions(self):
        release = threading.Event()
        manager = SessionManager()
        try:
            for seed in range(8):
                stuck = _one_bot_session(manager, StuckPolicy(release), seed=seed)
                GameLoop(stuck, decision_timeout=0.05).submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

            healthy = _one_bot_session(manager, RawTaxPolicy(), seed=99)
            GameLoop(healthy, decision_timeout=2.0).submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

            state = healthy.game_state
            assert state.pending_action is not None
            assert state.pending_action.action == ActionKind.TAX
            assert state.pending_action.actor_id == "bot_1"
        finally:
            release.set()

    def test_changes_are_saved_under_the_lock(self):
        session = _one_bot_session(SessionManager(), PassivePolicy())
        saved = []

        def on_change(s):
            assert s.lock.locked()
            saved.append(s.game_state)

        loop = GameLoop(session, on_change=on_change)
        loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.INCOME))

        assert saved == [session.game_state]

        loop.submit_move(Move.declare(HUMAN_SEAT_ID, ActionKind.COUP, "bot_1"))

        assert len(saved) == 2
        assert saved[-1] == session.game_state
