"""
Tests for decision providers.

Tests:
- The sanitized player view
- Parsing raw decisions
- Converting decisions to legal moves
- Heuristic and baseline policies
"""

import pytest

from ..engine_core.action import ActionKind, Move
from ..engine_core.cards import Role
from ..engine_core.state import GamePhase
from ..bots import (
    ActionDecision, BlockDecision, ChallengeDecision, LoseCardDecision, PassDecision,
    HeuristicPolicy, PassivePolicy, RandomPolicy,
    build_view, parse_decision, safe_default, to_move,
)
from ..bots.personality import CAUTIOUS, PERSONALITIES, create_random_personality, get_personality


class TestPlayerView:
    """The view must never expose opponents' hidden roles."""

    def test_own_hand_is_visible(self, three_player_state):
        view = build_view(three_player_state, "p1")

        assert view.hidden_roles == (Role.DUKE, Role.CAPTAIN)
        assert view.is_my_turn

    def test_opponents_show_counts_only(self, make_state):
        state = make_state(
            {"p1": [Role.DUKE, Role.CAPTAIN], "p2": [Role.CONTESSA, Role.ASSASSIN]},
            revealed={"p2": [0]},
        )
        view = build_view(state, "p1")

        p2 = view.opponent("p2")
        assert p2.influence == 1
        assert p2.revealed == (Role.CONTESSA,)
        assert not hasattr(p2, "cards")

        public = view.to_dict()
        assert "p2-1" not in str(public)
        assert "Assassin" not in str(public["opponents"])

    def test_history_window(self, three_player_state, reducer):
        state = three_player_state
        for seat in ("p1", "p2", "p3", "p1"):
            state = reducer.apply(state, Move.declare(seat, ActionKind.INCOME)).new_state

        view = build_view(state, "p2", history=3)

        assert len(view.history) == 3
        assert view.history[-1] == state.log[-1].text

    def test_unknown_seat(self, three_player_state):
        with pytest.raises(KeyError):
            build_view(three_player_state, "ghost")


class TestParseDecision:
    """Raw provider responses."""

    def test_action_with_target(self):
        decision = parse_decision({
            "type": "ACTION",
            "payload": {"action": "Steal", "targetId": "p2"},
            "thoughtProcess": "They are rich",
        })

        assert decision == ActionDecision(action=ActionKind.STEAL, target_id="p2", explanation="They are rich")

    def test_lenient_names(self):
        assert parse_decision({"type": "ACTION", "payload": {"action": "FOREIGN_AID"}}).action == ActionKind.FOREIGN_AID
        assert parse_decision({"type": "BLOCK", "payload": {"blockCard": "contessa"}}).claimed_role == Role.CONTESSA

    def test_json_inside_prose(self):
        raw = 'Sure! Here is my move:\n{"type": "CHALLENGE", "thoughtProcess": "bluff"}\nGood luck.'

        assert isinstance(parse_decision(raw), ChallengeDecision)

    def test_lose_card(self):
        decision = parse_decision({"type": "LOSE_CARD", "payload": {"cardToLose": "abc"}})

        assert decision == LoseCardDecision(card_id="abc")

    @pytest.mark.parametrize("raw", [
        None,
        "not json at all",
        {"type": "DANCE"},
        {"payload": {}},
        {"type": "ACTION", "payload": {"action": "Teleport"}},
        {"type": "BLOCK", "payload": {"blockCard": "Jester"}},
    ])
    def test_malformed_becomes_pass(self, raw):
        assert isinstance(parse_decision(raw), PassDecision)


class TestToMove:
    """Decisions become legal moves or safe defaults."""

    def test_legal_decision_kept(self, three_player_state):
        move = to_move(three_player_state, "p1", ActionDecision(action=ActionKind.STEAL, target_id="p2"))

        assert move == Move.declare("p1", ActionKind.STEAL, "p2")

    def test_target_dropped_for_untargeted_action(self, three_player_state):
        move = to_move(three_player_state, "p1", ActionDecision(action=ActionKind.TAX, target_id="p2"))

        assert move == Move.declare("p1", ActionKind.TAX)

    def test_pass_on_own_turn_becomes_income(self, three_player_state):
        move = to_move(three_player_state, "p1", PassDecision())

        assert move == Move.declare("p1", ActionKind.INCOME)

    def test_unaffordable_action_becomes_income(self, three_player_state):
        move = to_move(three_player_state, "p1", ActionDecision(action=ActionKind.COUP, target_id="p2"))

        assert move == Move.declare("p1", ActionKind.INCOME)

    def test_default_under_mandatory_coup(self, make_state):
        state = make_state(
            {"p1": [Role.DUKE, Role.CAPTAIN], "p2": [Role.CONTESSA, Role.ASSASSIN]},
            coins={"p1": 12},
        )

        assert safe_default(state, "p1") == Move.declare("p1", ActionKind.COUP, "p2")

    def test_illegal_block_becomes_pass(self, three_player_state, reducer):
        state = reducer.apply(three_player_state, Move.declare("p1", ActionKind.TAX)).new_state

        move = to_move(state, "p2", BlockDecision(claimed_role=Role.DUKE))

        assert move == Move.pass_("p2")

    def test_missing_card_choice_takes_first_hidden(self, make_state, reducer):
        state = make_state(
            {"p1": [Role.DUKE, Role.CAPTAIN], "p2": [Role.CONTESSA, Role.ASSASSIN]},
            coins={"p1": 7},
            revealed={"p2": [0]},
        )
        state = reducer.apply(state, Move.declare("p1", ActionKind.COUP, "p2")).new_state

        assert to_move(state, "p2", LoseCardDecision(card_id=None)) == Move.lose_card("p2", "p2-1")
        assert to_move(state, "p2", PassDecision()) == Move.lose_card("p2", "p2-1")

    def test_nothing_expected(self, three_player_state):
        assert to_move(three_player_state, "p2", PassDecision()) is None


class TestPolicies:
    """Tests for the built-in providers."""

    def test_passive_policy(self, three_player_state):
        view = build_view(three_player_state, "p1")

        decision = PassivePolicy().decide(view)

        assert decision == ActionDecision(action=ActionKind.INCOME, explanation="Income")

    def test_random_policy_picks_legal_moves(self, three_player_state):
        policy = RandomPolicy(seed=5)
        view = build_view(three_player_state, "p1")

        for _ in range(20):
            decision = policy.decide(view)
            assert to_move(three_player_state, "p1", decision) in view.legal

    def test_honest_duke_taxes(self, three_player_state):
        policy = HeuristicPolicy(personality=CAUTIOUS, seed=1)

        decision = policy.decide(build_view(three_player_state, "p1"))

        assert decision.action == ActionKind.TAX

    def test_challenges_impossible_claim(self, make_state, reducer):
        """All three Dukes are accounted for, so the Tax must be a bluff."""
        state = make_state(
            {
                "p1": [Role.CAPTAIN, Role.DUKE],
                "p2": [Role.DUKE, Role.CONTESSA],
                "p3": [Role.DUKE, Role.AMBASSADOR],
            },
            revealed={"p1": [1], "p3": [0]},
        )
        state = reducer.apply(state, Move.declare("p1", ActionKind.TAX)).new_state
        policy = HeuristicPolicy(personality=CAUTIOUS, seed=1)

        decision = policy.decide(build_view(state, "p2"))

        assert isinstance(decision, ChallengeDecision)

    def test_blocks_with_held_role(self, three_player_state, reducer):
        state = reducer.apply(three_player_state, Move.declare("p1", ActionKind.INCOME)).new_state
        state = reducer.apply(state, Move.declare("p2", ActionKind.FOREIGN_AID)).new_state
        policy = HeuristicPolicy(personality=CAUTIOUS, seed=1)

        decision = policy.decide(build_view(state, "p1"))

        assert decision == BlockDecision(claimed_role=Role.DUKE, explanation="Block with Duke")

    def test_gives_up_least_valuable_card(self, make_state, reducer):
        state = make_state(
            {"p1": [Role.DUKE, Role.CAPTAIN], "p2": [Role.DUKE, Role.AMBASSADOR]},
            coins={"p1": 7},
        )
        state = reducer.apply(state, Move.declare("p1", ActionKind.COUP, "p2")).new_state
        policy = HeuristicPolicy(personality=CAUTIOUS, seed=1)

        decision = policy.decide(build_view(state, "p2"))

        assert decision.card_id == "p2-1"

    def test_every_heuristic_decision_is_usable(self, dealt_game, reducer):
        """Whatever a personality decides, the result is a legal move."""
        for name, personality in PERSONALITIES.items():
            policy = HeuristicPolicy(personality=personality, seed=3)
            view = build_view(dealt_game, "p1")
            move = to_move(dealt_game, "p1", policy.decide(view))
            assert move in view.legal, name
            assert view.phase == GamePhase.TURN_START


class TestPersonalities:
    def test_lookup_is_case_insensitive(self):
        assert get_personality("Skeptic").name == "Skeptic"

    def test_unknown_personality(self):
        with pytest.raises(ValueError):
            get_personality("reckless")

    def test_random_variation_stays_in_range(self):
        personality = create_random_personality(seed=4, variance=1.0)

        for rate in (personality.bluff_rate, personality.challenge_rate, personality.aggression,
                     personality.risk_tolerance, personality.randomness):
            assert 0.0 <= rate <= 1.0
