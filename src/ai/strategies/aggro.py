"""
God Code Aggro Strategy

An aggressive AI strategy that prioritizes:
- Hitting the enemy Deity whenever possible
- Clearing Guardians with the weakest attackers that can still kill them
- Blocking only when the blocker survives or trades up
"""

from typing import TYPE_CHECKING

from src.engine.queries import (
    get_effective_health, get_guardians, get_legal_attack_targets,
    get_legal_attackers, get_legal_blockers, get_power, is_destructible
)
from src.engine.types import AttackDeclaration

from .base import AIStrategy

if TYPE_CHECKING:
    from src.engine import GameState


class AggroStrategy(AIStrategy):
    """
    Aggressive strategy that prioritizes face damage and quick wins.

    Key principles:
    - Always attack when possible
    - Go face unless a Guardian forces otherwise
    - Keep expensive cards, discard cheap ones
    """

    @property
    def name(self) -> str:
        return "Aggro"

    def choose_attacks(self, state: 'GameState', player_id: str) -> list[AttackDeclaration]:
        opponent_id = self._get_opponent_id(player_id, state)
        deity_id = state.players[opponent_id].deity_id
        guardians = get_guardians(state, opponent_id)

        # Strongest first, so Guardians soak the big hits
        attackers = sorted(
            get_legal_attackers(state, player_id),
            key=lambda iid: get_power(state.instances[iid]),
            reverse=True,
        )

        declarations = []
        for attacker_id in attackers:
            targets = get_legal_attack_targets(state, attacker_id)
            if not targets:
                continue

            if guardians:
                # Lowest remaining health Guardian that can actually die
                killable = [iid for iid in guardians if is_destructible(state.instances[iid])]
                if killable:
                    target = min(
                        killable,
                        key=lambda iid: get_effective_health(state.instances[iid]),
                    )
                else:
                    target = guardians[0]
            elif deity_id in targets:
                target = deity_id
            else:
                target = targets[0]

            declarations.append(AttackDeclaration(attacker_id=attacker_id, target_id=target))
        return declarations

    def choose_blocks(self, state: 'GameState', player_id: str) -> dict[int, int]:
        available = list(get_legal_blockers(state, player_id))
        blocks = {}

        for decl in state.combat.attackers:
            attacker = state.instances[decl.attacker_id]
            attacker_power = get_power(attacker)

            # Prefer blocks that kill; never chump
            scored = []
            for blocker_id in available:
                blocker = state.instances[blocker_id]
                survives = get_effective_health(blocker) > attacker_power
                kills = get_power(blocker) >= get_effective_health(attacker)
                if survives or kills:
                    scored.append(((kills and survives, kills, survives), blocker_id))

            if scored:
                best = max(scored, key=lambda pair: pair[0])[1]
                blocks[decl.attacker_id] = best
                available.remove(best)
        return blocks

    def choose_discards(self, state: 'GameState', player_id: str, count: int) -> list[int]:
        if count <= 0:
            return []
        hand = state.players[player_id].hand
        # Cheapest first; ties keep the older card
        ranked = sorted(
            range(len(hand)),
            key=lambda i: (state.instances[hand[i]].template.cost, -i),
        )
        return [hand[i] for i in ranked[:count]]
