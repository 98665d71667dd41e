"""
Plain helpers shared by the engine tests.
"""

from src.engine import Game, ZoneType, make_avatar


def recruits(count: int, prefix: str = "Recruit") -> list:
    """A plain deck of 1/1 Avatars."""
    return [make_avatar(f"{prefix} {i}", power=1, guard=1, cost=1) for i in range(count)]


def place(game: Game, template, owner: str, zone: ZoneType = ZoneType.AVATAR_ROW) -> int:
    """Put a card straight into a zone and return its instance ID."""
    return game.create_instance(template, owner, zone).instance_id


def give_kl(game: Game, player_id: str, amount: int) -> None:
    """Set both current and max KL."""
    ledger = game.state.players[player_id].resource
    ledger.max = amount
    ledger.current = amount


def assert_zone_invariant(game: Game) -> None:
    """Every instance is listed in exactly one zone, the one it records."""
    seen = {}
    for player in game.state.players.values():
        for zone, ids in player.zones.items():
            for iid in ids:
                assert iid not in seen, f"{iid} in {seen[iid]} and {zone}"
                seen[iid] = (player.id, zone)
    assert set(seen) == set(game.state.instances)
    for iid, obj in game.state.instances.items():
        assert seen[iid] == (obj.owner, obj.zone)
