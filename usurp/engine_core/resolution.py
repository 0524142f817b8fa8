"""
Resolution - Challenges, blocks, and influence loss.

The resolver:
1. Adjudicates a challenge by inspecting the claimant's hidden cards
2. Opens a block window when a counter-claim is made
3. Applies the revealed card and decides, from the recorded loss
   cause, what follows

A vindicated claimant shuffles the proven card back into the court and
draws a replacement, so the reveal does not leak deck order.
"""

from __future__ import annotations
import random

from .action import ActionResult, ErrorCode
from .cards import Role, draw, return_and_reshuffle
from .state import (
    GameState, LogKind, LossCause, PendingBlock,
    ActionDeclared, BlockDeclared, InfluenceLoss,
)
from .turns import reject, resolve_action, advance_turn


# Causes after which the pending action still goes ahead.
_ACTION_PROCEEDS = {
    LossCause.FAILED_ACTION_CHALLENGE,
    LossCause.SUCCEEDED_BLOCK_CHALLENGE,
}


def challenge(
    state: GameState,
    challenger_id: str,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Dispute the claim on the table (the action's, or the block's).

    The loser of the dispute is sent to the influence-loss phase with a
    cause that records what happens once the card is revealed.
    """
    if state.is_over:
        return reject(state, "The game is over.", ErrorCode.GAME_OVER)
    phase = state.phase
    if not isinstance(phase, (ActionDeclared, BlockDeclared)):
        return reject(state, f"Nothing to challenge during {state.phase_name.value}.", ErrorCode.WRONG_PHASE)
    if challenger_id not in phase.responders:
        return reject(state, f"{challenger_id} is not expected to respond.", ErrorCode.NOT_A_RESPONDER)

    challenger = state.get_player(challenger_id)
    pending = phase.action

    if isinstance(phase, ActionDeclared):
        if not pending.action.challengeable:
            return reject(
                state,
                f"{challenger.name} tried to challenge {pending.action.value}, which is unchallengeable!",
                ErrorCode.UNCHALLENGEABLE,
            )
        claimant = state.get_player(pending.actor_id)
        required = pending.action.claimed_role
        state = state.with_log(f"{challenger.name} challenges {claimant.name}'s {pending.action.value}!")
    else:
        claimant = state.get_player(phase.block.blocker_id)
        required = phase.block.claimed_role
        state = state.with_log(f"{challenger.name} challenges {claimant.name}'s block with {required.value}!")

    if claimant.holds(required):
        state = state.with_log(f"{claimant.name} reveals {required.value}! Challenge failed.")
        state = _launder(state, claimant.player_id, required, rng)
        if isinstance(phase, ActionDeclared):
            loss = InfluenceLoss(seat_id=challenger_id, cause=LossCause.FAILED_ACTION_CHALLENGE, action=pending)
        else:
            loss = InfluenceLoss(seat_id=challenger_id, cause=LossCause.FAILED_BLOCK_CHALLENGE)
        outcome = f"{challenger.name} lost the challenge"
    else:
        state = state.with_log(f"{claimant.name} does not have {required.value}! Challenge won.")
        if isinstance(phase, ActionDeclared):
            loss = InfluenceLoss(seat_id=claimant.player_id, cause=LossCause.SUCCEEDED_ACTION_CHALLENGE)
        else:
            loss = InfluenceLoss(seat_id=claimant.player_id, cause=LossCause.SUCCEEDED_BLOCK_CHALLENGE, action=pending)
        outcome = f"{challenger.name} won the challenge"

    return ActionResult.success_with_state(state.with_phase(loss), [outcome])


def _launder(state: GameState, player_id: str, role: Role, rng: random.Random | None) -> GameState:
    """Swap a proven card for a fresh draw from the reshuffled court."""
    player = state.get_player(player_id)
    index = player.hidden_index(role)
    deck = return_and_reshuffle(state.deck, player.cards[index], rng)
    replacement, deck = draw(deck)
    return state.with_player(player.with_card(index, replacement)).with_deck(deck)


def declare_block(state: GameState, blocker_id: str, claimed_role: Role) -> ActionResult:
    """
    Counter the pending action by claiming a blocking role.

    Foreign Aid may be blocked by any other active seat, Steal and
    Assassinate only by their target.
    """
    if state.is_over:
        return reject(state, "The game is over.", ErrorCode.GAME_OVER)
    phase = state.phase
    if not isinstance(phase, ActionDeclared):
        return reject(state, f"Nothing to block during {state.phase_name.value}.", ErrorCode.WRONG_PHASE)
    if blocker_id not in phase.responders:
        return reject(state, f"{blocker_id} is not expected to respond.", ErrorCode.NOT_A_RESPONDER)

    pending = phase.action
    if not pending.action.blockable:
        return reject(state, f"{pending.action.value} cannot be blocked.", ErrorCode.UNBLOCKABLE)
    if pending.action.only_target_blocks and blocker_id != pending.target_id:
        return reject(state, f"Only the target may block {pending.action.value}.", ErrorCode.NOT_A_RESPONDER)
    if claimed_role not in pending.action.blocking_roles:
        return reject(
            state,
            f"{claimed_role.value} does not block {pending.action.value}.",
            ErrorCode.INVALID_CLAIM,
        )

    blocker = state.get_player(blocker_id)
    block = PendingBlock(blocker_id=blocker_id, claimed_role=claimed_role)
    state = state.with_log(f"{blocker.name} blocks using {claimed_role.value}.")
    state = state.with_phase(
        BlockDeclared(action=pending, block=block, responders=state.responders_except(blocker_id))
    )
    return ActionResult.success_with_state(state, [f"{blocker.name}: block ({claimed_role.value})"])


def lose_card(
    state: GameState,
    seat_id: str,
    card_id: str,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Reveal one hidden card of the seat that owes influence.

    Eliminates the seat when no hidden card remains, then continues
    according to the loss cause:

    | Cause                       | Next                     |
    |-----------------------------|--------------------------|
    | COUP_TARGET                 | advance turn             |
    | ASSASSINATE_TARGET          | advance turn             |
    | FAILED_ACTION_CHALLENGE     | resolve the action       |
    | FAILED_BLOCK_CHALLENGE      | block stands, advance    |
    | SUCCEEDED_ACTION_CHALLENGE  | advance turn             |
    | SUCCEEDED_BLOCK_CHALLENGE   | resolve the action       |
    """
    if state.is_over:
        return reject(state, "The game is over.", ErrorCode.GAME_OVER)
    phase = state.phase
    if not isinstance(phase, InfluenceLoss):
        return reject(state, f"No influence is owed during {state.phase_name.value}.", ErrorCode.WRONG_PHASE)
    if seat_id != phase.seat_id:
        return reject(state, f"{seat_id} does not owe influence.", ErrorCode.NOT_A_RESPONDER)

    player = state.get_player(seat_id)
    index = player.card_index(card_id)
    if index is None or player.cards[index].revealed:
        return reject(state, f"{card_id} is not a hidden card of {player.name}.", ErrorCode.INVALID_CARD)

    card = player.cards[index]
    player = player.with_card(index, card.reveal())
    state = state.with_player(player)
    state = state.with_log(f"{player.name} lost influence: {card.role.value}.", LogKind.DANGER)
    changes = [f"{player.name} revealed {card.role.value}"]

    if player.influence == 0:
        placement = len(state.active_players)
        state = state.with_player(player.eliminate(placement))
        state = state.with_log(f"{player.name} has been exiled!", LogKind.DANGER)
        changes.append(f"{player.name} eliminated (place {placement})")
        if len(state.active_players) == 1:
            return ActionResult.success_with_state(advance_turn(state), changes)

    if phase.cause in _ACTION_PROCEEDS:
        state = resolve_action(state, rng)
    else:
        if phase.cause == LossCause.FAILED_BLOCK_CHALLENGE:
            state = state.with_log("Block stands. Action thwarted.")
        state = advance_turn(state)

    return ActionResult.success_with_state(state, changes)
