"""
Pydantic Snapshot Models

A read-only, JSON-serializable picture of a GameState. Hosts persist or ship
it however they like; the engine never reads it back.

Event timestamps are not part of a snapshot, so two states that differ only
in how many events were emitted compare equal.
"""

from pydantic import BaseModel, Field
from typing import Optional

from .types import GameState, CardInstance, Player, CombatState


class CardSnapshot(BaseModel):
    """One card instance."""
    instance_id: int
    template_id: str
    name: str
    card_type: str
    owner: str
    zone: str
    tapped: bool = False
    face_down: bool = False
    damage: int = 0
    stat_modifiers: dict[str, int] = Field(default_factory=dict)
    entered_turn: int = 0
    attacked_this_turn: bool = False


class ResourceSnapshot(BaseModel):
    current: int
    max: int
    overflow: int
    god_code_charges: int


class PlayerSnapshot(BaseModel):
    """A player, with zones as ordered instance ID lists keyed by zone name."""
    id: str
    name: str
    essence: int
    resource: ResourceSnapshot
    deity_id: Optional[int] = None
    zones: dict[str, list[int]] = Field(default_factory=dict)
    has_drawn_this_turn: bool = False
    domains_played_this_turn: int = 0
    passive_used_this_turn: bool = False
    turns_taken: int = 0


class AttackSnapshot(BaseModel):
    attacker_id: int
    target_id: int
    blocker_id: Optional[int] = None


class CombatSnapshot(BaseModel):
    step: str
    attacks: list[AttackSnapshot] = Field(default_factory=list)
    damage: dict[int, int] = Field(default_factory=dict)


class PendingPlaySnapshot(BaseModel):
    player_id: str
    instance_id: int
    paid: int
    hand_index: int


class OutcomeSnapshot(BaseModel):
    winner: Optional[str] = None
    loser: str
    reason: str


class GameSnapshot(BaseModel):
    """Full match state."""
    turn_number: int
    phase: str
    active_player: Optional[str] = None
    first_player: Optional[str] = None
    players: list[PlayerSnapshot] = Field(default_factory=list)
    cards: list[CardSnapshot] = Field(default_factory=list)
    combat: CombatSnapshot
    pending_play: Optional[PendingPlaySnapshot] = None
    outcome: Optional[OutcomeSnapshot] = None
    next_instance_id: int = 1


def _card(obj: CardInstance) -> CardSnapshot:
    return CardSnapshot(
        instance_id=obj.instance_id,
        template_id=obj.template.id,
        name=obj.name,
        card_type=obj.card_type.name,
        owner=obj.owner,
        zone=obj.zone.name,
        tapped=obj.tapped,
        face_down=obj.face_down,
        damage=obj.damage,
        stat_modifiers=dict(obj.stat_modifiers),
        entered_turn=obj.entered_turn,
        attacked_this_turn=obj.attacked_this_turn,
    )


def _player(player: Player) -> PlayerSnapshot:
    ledger = player.resource
    return PlayerSnapshot(
        id=player.id,
        name=player.name,
        essence=player.essence,
        resource=ResourceSnapshot(
            current=ledger.current,
            max=ledger.max,
            overflow=ledger.overflow,
            god_code_charges=ledger.god_code_charges,
        ),
        deity_id=player.deity_id,
        zones={zone.name: list(ids) for zone, ids in player.zones.items()},
        has_drawn_this_turn=player.has_drawn_this_turn,
        domains_played_this_turn=player.domains_played_this_turn,
        passive_used_this_turn=player.passive_used_this_turn,
        turns_taken=player.turns_taken,
    )


def _combat(combat: CombatState) -> CombatSnapshot:
    return CombatSnapshot(
        step=combat.step.name,
        attacks=[
            AttackSnapshot(
                attacker_id=decl.attacker_id,
                target_id=decl.target_id,
                blocker_id=combat.blockers.get(decl.attacker_id),
            )
            for decl in combat.attackers
        ],
        damage=dict(combat.damage),
    )


def snapshot(state: GameState) -> GameSnapshot:
    """Build a GameSnapshot of state."""
    pending = state.pending_play
    outcome = state.outcome
    return GameSnapshot(
        turn_number=state.turn_number,
        phase=state.phase.name,
        active_player=state.active_player,
        first_player=state.first_player,
        players=[_player(p) for p in state.players.values()],
        cards=[_card(obj) for _, obj in sorted(state.instances.items())],
        combat=_combat(state.combat),
        pending_play=PendingPlaySnapshot(
            player_id=pending.player_id,
            instance_id=pending.instance_id,
            paid=pending.paid,
            hand_index=pending.hand_index,
        ) if pending else None,
        outcome=OutcomeSnapshot(
            winner=outcome.winner,
            loser=outcome.loser,
            reason=outcome.reason,
        ) if outcome else None,
        next_instance_id=state.next_instance_id,
    )
