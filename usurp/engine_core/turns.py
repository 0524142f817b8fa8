"""
Turns - Declaring actions, collecting responses, resolving effects,
and rotating the active seat.

Every function here is pure: it takes a GameState and returns either a
new GameState or an ActionResult carrying one.
"""

from __future__ import annotations
import random

from .action import ActionKind, ActionResult, ErrorCode, MANDATORY_COUP_COINS
from .cards import draw, return_and_reshuffle
from .state import (
    GameState, LogKind, PendingAction,
    TurnStart, ActionDeclared, BlockDeclared, InfluenceLoss, GameOver, LossCause,
)


def reject(state: GameState, error: str, code: ErrorCode) -> ActionResult:
    """Reject a move in place: same state plus an alert log line."""
    return ActionResult.failure(error, error_code=code.value, state=state.with_log(error, LogKind.ALERT))


def declare_action(
    state: GameState,
    actor_id: str,
    action: ActionKind,
    target_id: str | None = None,
) -> ActionResult:
    """
    The current seat declares its turn action.

    Costs are paid here, before any dispute. Income resolves at once,
    Coup goes straight to the target's influence loss, everything else
    opens a response window for all other active seats.
    """
    if state.is_over:
        return reject(state, "The game is over.", ErrorCode.GAME_OVER)
    if not isinstance(state.phase, TurnStart):
        return reject(state, f"Cannot declare an action during {state.phase_name.value}.", ErrorCode.WRONG_PHASE)

    actor = state.current_player
    if actor.player_id != actor_id:
        return reject(state, f"It is not {actor_id}'s turn.", ErrorCode.NOT_YOUR_TURN)

    if actor.coins >= MANDATORY_COUP_COINS and action != ActionKind.COUP:
        return reject(state, f"{actor.name} has 10+ coins and must Coup.", ErrorCode.MUST_COUP)
    if actor.coins < action.cost:
        return reject(
            state,
            f"{action.value} costs {action.cost} coins; {actor.name} has {actor.coins}.",
            ErrorCode.INSUFFICIENT_COINS,
        )

    if action.requires_target:
        if target_id is None:
            return reject(state, f"{action.value} needs a target.", ErrorCode.MISSING_TARGET)
        if target_id == actor_id or not state.is_active(target_id):
            return reject(state, f"{target_id} is not a valid target.", ErrorCode.INVALID_TARGET)
    else:
        target_id = None

    target = state.get_player(target_id)
    on_target = f" on {target.name}" if target else ""
    state = state.with_log(f"{actor.name} declares {action.value}{on_target}.")

    if action.cost:
        actor = actor.with_coins(actor.coins - action.cost)
        state = state.with_player(actor)

    pending = PendingAction(actor_id=actor_id, action=action, target_id=target_id)

    if action == ActionKind.INCOME:
        state = state.with_player(actor.with_coins(actor.coins + 1))
        state = state.with_log(f"{actor.name} gained 1 coin.")
        return ActionResult.success_with_state(advance_turn(state), [f"{actor.name}: Income"])

    if action == ActionKind.COUP:
        state = state.with_phase(InfluenceLoss(seat_id=target_id, cause=LossCause.COUP_TARGET, action=pending))
        return ActionResult.success_with_state(state, [f"{actor.name}: Coup on {target.name}"])

    state = state.with_phase(ActionDeclared(action=pending, responders=state.responders_except(actor_id)))
    return ActionResult.success_with_state(state, [f"{actor.name}: {action.value}{on_target}"])


def pass_response(state: GameState, seat_id: str) -> ActionResult:
    """
    A responder declines to challenge or block.

    Only removes the seat from the waiting set; `settle_responses`
    decides what happens when nobody is left.
    """
    if state.is_over:
        return reject(state, "The game is over.", ErrorCode.GAME_OVER)
    phase = state.phase
    if not isinstance(phase, (ActionDeclared, BlockDeclared)):
        return reject(state, f"Nothing to pass on during {state.phase_name.value}.", ErrorCode.WRONG_PHASE)
    if seat_id not in phase.responders:
        return reject(state, f"{seat_id} is not expected to respond.", ErrorCode.NOT_A_RESPONDER)

    player = state.get_player(seat_id)
    responders = tuple(r for r in phase.responders if r != seat_id)
    state = state.with_phase(_with_responders(phase, responders))
    state = state.with_log(f"{player.name} passes.")
    return ActionResult.success_with_state(state, [f"{player.name}: pass"])


def settle_responses(state: GameState, rng: random.Random | None = None) -> GameState:
    """
    Close a response window once every responder has passed.

    An unopposed action succeeds; an unopposed block stands and the
    action is cancelled.
    """
    phase = state.phase
    if isinstance(phase, ActionDeclared) and not phase.responders:
        return resolve_action(state, rng)
    if isinstance(phase, BlockDeclared) and not phase.responders:
        blocker = state.get_player(phase.block.blocker_id)
        state = state.with_log(f"{blocker.name}'s block stands. {phase.action.action.value} is thwarted.")
        return advance_turn(state)
    return state


def resolve_action(state: GameState, rng: random.Random | None = None) -> GameState:
    """Apply the effect of the pending action, now confirmed to succeed."""
    pending = state.pending_action
    if pending is None:
        return advance_turn(state)

    actor = state.get_player(pending.actor_id)
    target = state.get_player(pending.target_id)
    action = pending.action

    if action == ActionKind.FOREIGN_AID:
        state = state.with_player(actor.with_coins(actor.coins + 2))
        state = state.with_log(f"{actor.name} collected Foreign Aid.")

    elif action == ActionKind.TAX:
        state = state.with_player(actor.with_coins(actor.coins + 3))
        state = state.with_log(f"{actor.name} collected Tax.")

    elif action == ActionKind.STEAL:
        stolen = min(2, target.coins)
        state = state.with_player(target.with_coins(target.coins - stolen))
        state = state.with_player(actor.with_coins(actor.coins + stolen))
        state = state.with_log(f"{actor.name} stole {stolen} from {target.name}.")

    elif action == ActionKind.EXCHANGE:
        state = _exchange(state, actor.player_id, rng)

    elif action == ActionKind.ASSASSINATE:
        if target.eliminated:
            state = state.with_log(f"{target.name} is already out; the assassination has no effect.")
        else:
            state = state.with_log(f"Assassination succeeds! {target.name} must lose influence.", LogKind.DANGER)
            return state.with_phase(
                InfluenceLoss(seat_id=target.player_id, cause=LossCause.ASSASSINATE_TARGET, action=pending)
            )

    return advance_turn(state)


def _exchange(state: GameState, actor_id: str, rng: random.Random | None) -> GameState:
    """Return every hidden card to the court, reshuffle, draw as many back."""
    actor = state.get_player(actor_id)
    deck = state.deck
    slots = [i for i, card in enumerate(actor.cards) if card.hidden]
    for i in slots:
        deck = return_and_reshuffle(deck, actor.cards[i], rng)
    for i in slots:
        card, deck = draw(deck)
        actor = actor.with_card(i, card)
    state = state.with_player(actor).with_deck(deck)
    return state.with_log(f"{actor.name} exchanged cards with the Court deck.")


def advance_turn(state: GameState) -> GameState:
    """
    End the turn.

    With a single seat left the game ends and that seat takes first
    place; otherwise the next active seat starts a fresh turn.
    """
    if state.is_over:
        return state

    active = state.active_players
    if len(active) == 1:
        winner = active[0]
        state = state.with_player(winner.placed(1))
        state = state.with_phase(GameOver(winner_id=winner.player_id))
        return state.with_log(f"{winner.name} wins the game!", LogKind.SUCCESS)

    index = (state.current_index + 1) % state.num_players
    while state.players[index].eliminated:
        index = (index + 1) % state.num_players

    return state._copy_with(
        current_index=index,
        phase=TurnStart(),
        turn=state.turn + 1,
    )


def _with_responders(phase, responders: tuple[str, ...]):
    if isinstance(phase, ActionDeclared):
        return ActionDeclared(action=phase.action, responders=responders)
    return BlockDeclared(action=phase.action, block=phase.block, responders=responders)
