"""
Effect Descriptors

Card effects are typed values, not text:

    DealDamage(amount=1, target=EffectTarget.ENEMY_DEITY)

The engine never interprets them itself. It hands each descriptor to an
EffectResolver, which looks up a handler by the descriptor's `kind` and
carries it out through the Game's public operations only.

DefaultEffectResolver covers the descriptors defined here. Other resolvers
can subclass it or register handlers for their own descriptor kinds.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, ClassVar, Optional, TYPE_CHECKING
import logging

from .errors import InvalidTargetError
from .types import CardType, ZoneType

if TYPE_CHECKING:
    from .game import Game


logger = logging.getLogger(__name__)


class EffectTarget(Enum):
    CONTROLLER = auto()
    ENEMY_DEITY = auto()
    CHOSEN_AVATAR = auto()      # Picked by the player when the card is played
    EACH_ENEMY_AVATAR = auto()


# =============================================================================
# Descriptors
# =============================================================================

@dataclass(frozen=True)
class Effect:
    kind: ClassVar[str] = "effect"

    @property
    def needs_target(self) -> bool:
        return getattr(self, 'target', None) == EffectTarget.CHOSEN_AVATAR


@dataclass(frozen=True)
class DealDamage(Effect):
    kind: ClassVar[str] = "deal_damage"
    amount: int
    target: EffectTarget = EffectTarget.ENEMY_DEITY


@dataclass(frozen=True)
class GainEssence(Effect):
    kind: ClassVar[str] = "gain_essence"
    amount: int


@dataclass(frozen=True)
class DrawCards(Effect):
    kind: ClassVar[str] = "draw_cards"
    amount: int = 1


@dataclass(frozen=True)
class GainResource(Effect):
    """Gain KL now. Gains past max spill into overflow."""
    kind: ClassVar[str] = "gain_resource"
    amount: int


@dataclass(frozen=True)
class DestroyAvatar(Effect):
    kind: ClassVar[str] = "destroy_avatar"
    target: EffectTarget = EffectTarget.CHOSEN_AVATAR


@dataclass(frozen=True)
class Composite(Effect):
    kind: ClassVar[str] = "composite"
    effects: tuple = ()

    @property
    def needs_target(self) -> bool:
        return any(e.needs_target for e in self.effects)


def needs_target(effects) -> bool:
    return any(e.needs_target for e in effects)


def effect_kinds(effects):
    """Every descriptor kind in effects, looking inside Composites."""
    for effect in effects:
        yield effect.kind
        if isinstance(effect, Composite):
            yield from effect_kinds(effect.effects)


# =============================================================================
# Resolution
# =============================================================================

@dataclass
class EffectContext:
    """Who is resolving what, and at whom."""
    game: 'Game'
    controller: str
    source_id: Optional[int] = None
    target_id: Optional[int] = None


EffectHandler = Callable[[Effect, EffectContext], None]


def check_avatar_target(game: 'Game', target_id: Optional[int]) -> None:
    """Raise InvalidTargetError unless target_id is an Avatar in play."""
    if target_id is None:
        raise InvalidTargetError("This card needs a target Avatar")
    obj = game.state.instances.get(target_id)
    if obj is None or obj.card_type != CardType.AVATAR or obj.zone != ZoneType.AVATAR_ROW:
        raise InvalidTargetError(f"{target_id} is not an Avatar in play")


class EffectResolver:
    """Dispatch table from descriptor kind to handler."""

    def __init__(self):
        self._handlers: dict[str, EffectHandler] = {}

    def register(self, kind: str, handler: EffectHandler) -> None:
        self._handlers[kind] = handler

    def handles(self, kind: str) -> bool:
        return kind in self._handlers

    def resolve(self, effect: Effect, ctx: EffectContext) -> None:
        handler = self._handlers.get(effect.kind)
        if handler is None:
            raise ValueError(f"No handler registered for effect kind {effect.kind!r}")
        logger.debug("resolve %s for %s", effect, ctx.controller)
        handler(effect, ctx)

    def resolve_all(self, effects, ctx: EffectContext) -> None:
        for effect in effects:
            if ctx.game.state.is_over:
                break
            self.resolve(effect, ctx)


class DefaultEffectResolver(EffectResolver):
    """Handlers for the descriptors in this module."""

    def __init__(self):
        super().__init__()
        self.register(DealDamage.kind, self._deal_damage)
        self.register(GainEssence.kind, self._gain_essence)
        self.register(DrawCards.kind, self._draw_cards)
        self.register(GainResource.kind, self._gain_resource)
        self.register(DestroyAvatar.kind, self._destroy_avatar)
        self.register(Composite.kind, self._composite)

    def _avatar_targets(self, target: EffectTarget, ctx: EffectContext) -> list[int]:
        game = ctx.game
        if target == EffectTarget.CHOSEN_AVATAR:
            # Checked when the card was played; an earlier effect may have removed it since
            try:
                check_avatar_target(game, ctx.target_id)
            except InvalidTargetError:
                logger.debug("Target %s left play, effect skipped", ctx.target_id)
                return []
            return [ctx.target_id]
        if target == EffectTarget.EACH_ENEMY_AVATAR:
            return list(game.get_opponent(ctx.controller).avatar_row)
        return []

    def _deal_damage(self, effect: DealDamage, ctx: EffectContext) -> None:
        game = ctx.game
        if effect.target == EffectTarget.ENEMY_DEITY:
            enemy = game.get_opponent(ctx.controller)
            game.change_essence(enemy.id, -effect.amount, source_id=ctx.source_id)
        elif effect.target == EffectTarget.CONTROLLER:
            game.change_essence(ctx.controller, -effect.amount, source_id=ctx.source_id)
        else:
            for target_id in self._avatar_targets(effect.target, ctx):
                game.damage_avatar(target_id, effect.amount, source_id=ctx.source_id)

    def _gain_essence(self, effect: GainEssence, ctx: EffectContext) -> None:
        ctx.game.change_essence(ctx.controller, effect.amount, source_id=ctx.source_id)

    def _draw_cards(self, effect: DrawCards, ctx: EffectContext) -> None:
        ctx.game.draw_cards(ctx.controller, effect.amount)

    def _gain_resource(self, effect: GainResource, ctx: EffectContext) -> None:
        ctx.game.resources.adjust(ctx.controller, effect.amount)

    def _destroy_avatar(self, effect: DestroyAvatar, ctx: EffectContext) -> None:
        for target_id in self._avatar_targets(effect.target, ctx):
            ctx.game.destroy(target_id)

    def _composite(self, effect: Composite, ctx: EffectContext) -> None:
        self.resolve_all(effect.effects, ctx)
