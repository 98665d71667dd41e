"""
God Code Combat Manager

Handles the Clash phase:
- Declare Attackers (each with a target: enemy Deity or enemy Avatar)
- Declare Blockers
- Resolution (simultaneous damage, then destruction)

Guardian: while the defender controls a Guardian permanent, every attacker
must target one of them.

Declarations are validated one at a time and rejected without side effects.
Resolution does no validation: it works from the declarations as they stand.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
import logging

from .errors import (
    AlreadyActedError, IllegalPhaseActionError, IllegalZoneTransitionError,
    InvalidTargetError, MatchOverError, PriorityViolationError,
    SummoningSicknessError
)
from .queries import (
    get_guardians, get_opponent, get_power, is_lethal, is_summoning_sick
)
from .types import (
    GameState, AttackDeclaration, CardInstance, CombatState, CombatStep,
    Event, EventType, Phase, ZoneType, PERMANENT_ZONES
)

if TYPE_CHECKING:
    from .game import Game


logger = logging.getLogger(__name__)


@dataclass
class DamageAssignment:
    """One hit computed during resolution."""
    source_id: int
    target_id: int   # Instance ID; the Deity stands in for the defending player
    amount: int


@dataclass
class CombatResult:
    assignments: list[DamageAssignment] = field(default_factory=list)
    essence_damage: int = 0
    destroyed: list[int] = field(default_factory=list)


class CombatManager:
    """
    Manages Clash phase mechanics.
    """

    def __init__(self, state: GameState):
        self.state = state
        self.game: Optional['Game'] = None

    @property
    def combat(self) -> CombatState:
        return self.state.combat

    # -------------------------------------------------------------------------
    # Attackers
    # -------------------------------------------------------------------------

    def declare_attacker(self, player_id: str, attacker_id: int, target_id: int) -> AttackDeclaration:
        """
        Declare one attacker and its target.

        Raises:
            IllegalPhaseActionError: wrong phase, step or player
            AlreadyActedError: attacker tapped, already attacked or declared
            SummoningSicknessError: attacker entered this turn without Haste
            InvalidTargetError: target is not the enemy Deity or an enemy permanent
            PriorityViolationError: target ignores an enemy Guardian
        """
        self._check_step(CombatStep.SELECTING_ATTACKERS)
        if player_id != self.state.active_player:
            raise IllegalPhaseActionError("Only the active player attacks")

        attacker = self._own_avatar(player_id, attacker_id)
        if attacker.tapped:
            raise AlreadyActedError(f"{attacker.name} is tapped")
        if attacker.attacked_this_turn or self.combat.is_declared(attacker_id):
            raise AlreadyActedError(f"{attacker.name} has already attacked this turn")
        if is_summoning_sick(self.state, attacker):
            raise SummoningSicknessError(f"{attacker.name} entered play this turn")

        defender = get_opponent(self.state, player_id)
        self._check_target(defender.id, target_id)

        declaration = AttackDeclaration(attacker_id=attacker_id, target_id=target_id)
        self.combat.attackers.append(declaration)

        logger.debug("%s attacks %s", attacker.name, target_id)
        self.game.pipeline.emit(Event(
            type=EventType.ATTACK_DECLARED,
            payload={
                'attacker_id': attacker_id,
                'target_id': target_id,
                'defending_player': defender.id,
            },
            source=attacker_id,
            controller=player_id,
        ))
        return declaration

    def withdraw_attacker(self, player_id: str, attacker_id: int) -> None:
        """Take back a declaration before attacks are closed."""
        self._check_step(CombatStep.SELECTING_ATTACKERS)
        if player_id != self.state.active_player:
            raise IllegalPhaseActionError("Only the active player attacks")
        for i, decl in enumerate(self.combat.attackers):
            if decl.attacker_id == attacker_id:
                del self.combat.attackers[i]
                return
        raise InvalidTargetError(f"{attacker_id} is not attacking")

    def close_attacks(self, player_id: str) -> CombatStep:
        """Lock in attackers. With none declared, combat is over."""
        self._check_step(CombatStep.SELECTING_ATTACKERS)
        if player_id != self.state.active_player:
            raise IllegalPhaseActionError("Only the active player attacks")

        if self.combat.attackers:
            self.combat.step = CombatStep.DECLARING_BLOCKERS
        else:
            self.combat.step = CombatStep.IDLE
        return self.combat.step

    def _check_target(self, defender_id: str, target_id: int) -> None:
        defender = self.state.players[defender_id]
        guardians = get_guardians(self.state, defender_id)

        valid = target_id == defender.deity_id or target_id in defender.avatar_row or target_id in guardians
        if not valid:
            raise InvalidTargetError(f"{target_id} is not the enemy Deity or an enemy Avatar")
        if guardians and target_id not in guardians:
            raise PriorityViolationError("An enemy Guardian must be attacked first")

    # -------------------------------------------------------------------------
    # Blockers
    # -------------------------------------------------------------------------

    def declare_blocker(self, player_id: str, attacker_id: int, blocker_id: int) -> None:
        """Assign one untapped defending Avatar to block one attacker."""
        self._check_step(CombatStep.DECLARING_BLOCKERS)
        if player_id == self.state.active_player:
            raise IllegalPhaseActionError("Only the defending player blocks")
        if not self.combat.is_declared(attacker_id):
            raise InvalidTargetError(f"{attacker_id} is not attacking")
        if attacker_id in self.combat.blockers:
            raise AlreadyActedError(f"Attacker {attacker_id} is already blocked")

        blocker = self._own_avatar(player_id, blocker_id)
        if blocker.tapped:
            raise AlreadyActedError(f"{blocker.name} is tapped")
        if self.combat.is_blocking(blocker_id):
            raise AlreadyActedError(f"{blocker.name} is already blocking")

        self.combat.blockers[attacker_id] = blocker_id

        self.game.pipeline.emit(Event(
            type=EventType.BLOCK_DECLARED,
            payload={'attacker_id': attacker_id, 'blocker_id': blocker_id},
            source=blocker_id,
            controller=player_id,
        ))

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(self) -> CombatResult:
        """
        Resolve every bout at once.

        1. Compute all hits from the powers as they stand now
        2. Apply damage to cards and essence
        3. Destroy every card whose damage meets its guard
        4. Tap attackers, mark them as having attacked, reset combat
        """
        self._check_step(CombatStep.DECLARING_BLOCKERS)
        combat = self.combat
        combat.step = CombatStep.RESOLVING

        attacker_player = self.state.active_player
        defender = get_opponent(self.state, attacker_player)
        result = CombatResult()

        # 1. Compute
        for decl in combat.attackers:
            attacker = self.state.instances[decl.attacker_id]
            attacker_power = get_power(attacker)
            blocker_id = combat.blockers.get(decl.attacker_id)

            if blocker_id is not None:
                opponent = self._in_play(blocker_id)
            elif decl.target_id == defender.deity_id:
                opponent = None
                if attacker_power > 0:
                    result.essence_damage += attacker_power
                    result.assignments.append(DamageAssignment(decl.attacker_id, decl.target_id, attacker_power))
                continue
            else:
                opponent = self._in_play(decl.target_id)

            if opponent is None:
                continue

            # Mutual, simultaneous
            self._assign(result, decl.attacker_id, opponent.instance_id, attacker_power)
            self._assign(result, opponent.instance_id, decl.attacker_id, get_power(opponent))

        # 2. Apply
        for hit in result.assignments:
            if hit.target_id == defender.deity_id:
                continue
            combat.damage[hit.target_id] = combat.damage.get(hit.target_id, 0) + hit.amount
        for instance_id, amount in combat.damage.items():
            self.state.instances[instance_id].damage += amount

        for hit in result.assignments:
            self.game.pipeline.emit(Event(
                type=EventType.DAMAGE_DEALT,
                payload={
                    'source': hit.source_id,
                    'target': hit.target_id,
                    'amount': hit.amount,
                    'is_combat': True,
                },
                source=hit.source_id,
            ))

        if result.essence_damage:
            self.game.change_essence(defender.id, -result.essence_damage, winner_id=attacker_player)

        # 3. Destroy
        for instance_id in list(combat.damage):
            obj = self.state.instances[instance_id]
            if obj.zone in PERMANENT_ZONES and is_lethal(obj, self.game.config):
                self.game.destroy(instance_id, reason='combat')
                result.destroyed.append(instance_id)

        # 4. Clean up
        for decl in combat.attackers:
            attacker = self.state.instances[decl.attacker_id]
            if attacker.zone == ZoneType.AVATAR_ROW:
                attacker.tapped = True
                attacker.attacked_this_turn = True

        logger.info(
            "Combat: %d essence damage, %d destroyed",
            result.essence_damage, len(result.destroyed)
        )
        self.state.combat = CombatState()
        return result

    def _assign(self, result: CombatResult, source_id: int, target_id: int, amount: int) -> None:
        if amount <= 0:
            return
        result.assignments.append(DamageAssignment(source_id, target_id, amount))

    def _in_play(self, instance_id: int) -> Optional[CardInstance]:
        obj = self.state.instances.get(instance_id)
        if obj is None or obj.zone not in PERMANENT_ZONES:
            return None
        return obj

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_step(self, step: CombatStep) -> None:
        if self.state.is_over:
            raise MatchOverError("The match is over")
        if self.state.phase != Phase.CLASH:
            raise IllegalPhaseActionError(f"No combat during {self.state.phase.name}")
        if self.combat.step != step:
            raise IllegalPhaseActionError(
                f"Combat is in {self.combat.step.name}, expected {step.name}"
            )

    def _own_avatar(self, player_id: str, instance_id: int) -> CardInstance:
        obj = self.game.zones.check_in_zone(instance_id, ZoneType.AVATAR_ROW)
        if obj.owner != player_id:
            raise IllegalZoneTransitionError(f"{obj.name} is not on player {player_id}'s Avatar row")
        return obj
