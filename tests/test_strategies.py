"""
Tests for AI strategies driving the engine through its query surface.
"""

from src.ai import AggroStrategy
from src.engine import Phase, ZoneType, make_avatar, make_domain

from helpers import place


def to_clash(game):
    game.start("p1")
    game.advance_to(Phase.CLASH)


class TestAggroStrategy:

    def test_name(self):
        assert AggroStrategy().name == "Aggro"

    def test_goes_face_without_guardians(self, game):
        a = place(game, make_avatar("A", 3), "p1")
        b = place(game, make_avatar("B", 1), "p1")
        to_clash(game)

        plan = AggroStrategy().choose_attacks(game.state, "p1")
        deity = game.state.players["p2"].deity_id
        assert [(d.attacker_id, d.target_id) for d in plan] == [(a, deity), (b, deity)]

        for decl in plan:
            game.declare_attacker("p1", decl.attacker_id, decl.target_id)
        game.close_attacks("p1")
        game.resolve_combat()
        assert game.state.players["p2"].essence == 21

    def test_attacks_guardian_when_forced(self, game):
        place(game, make_avatar("A", 3), "p1")
        warden = place(game, make_avatar("Warden", 0, guard=5, keywords={"guardian"}), "p2")
        to_clash(game)

        plan = AggroStrategy().choose_attacks(game.state, "p1")
        assert all(d.target_id == warden for d in plan)
        for decl in plan:
            game.declare_attacker("p1", decl.attacker_id, decl.target_id)

    def test_ignores_guardian_that_cannot_die(self, game):
        place(game, make_avatar("A", 3), "p1")
        bastion = place(game, make_domain("Bastion", keywords={"guardian"}), "p2", ZoneType.DOMAIN_ROW)
        warden = place(game, make_avatar("Warden", 0, guard=5, keywords={"guardian"}), "p2")
        to_clash(game)

        plan = AggroStrategy().choose_attacks(game.state, "p1")
        assert [d.target_id for d in plan] == [warden]
        assert bastion not in [d.target_id for d in plan]

    def test_skips_summoning_sick(self, game):
        to_clash(game)
        place(game, make_avatar("Fresh", 3), "p1")
        assert AggroStrategy().choose_attacks(game.state, "p1") == []

    def test_blocks_only_good_trades(self, game):
        big = place(game, make_avatar("Big", 4, guard=4), "p1")
        small = place(game, make_avatar("Small", 1, guard=1), "p1")
        chump = place(game, make_avatar("Chump", 1, guard=1), "p2")
        wall = place(game, make_avatar("Wall", 0, guard=3), "p2")
        to_clash(game)
        deity = game.state.players["p2"].deity_id
        game.declare_attacker("p1", big, deity)
        game.declare_attacker("p1", small, deity)
        game.close_attacks("p1")

        blocks = AggroStrategy().choose_blocks(game.state, "p2")
        # Nothing survives or kills Big; Chump trades with Small
        assert blocks == {small: chump}

        for attacker_id, blocker_id in blocks.items():
            game.declare_blocker("p2", attacker_id, blocker_id)
        game.resolve_combat()
        assert game.get_instance(small).zone == ZoneType.CRYPT
        assert game.get_instance(chump).zone == ZoneType.CRYPT
        assert game.state.players["p2"].essence == 21

    def test_discards_cheapest(self, game):
        cheap = place(game, make_avatar("Cheap", 1, cost=1), "p1", ZoneType.HAND)
        pricey = place(game, make_avatar("Pricey", 5, cost=6), "p1", ZoneType.HAND)
        mid = place(game, make_avatar("Mid", 3, cost=3), "p1", ZoneType.HAND)

        chosen = AggroStrategy().choose_discards(game.state, "p1", 2)
        assert chosen == [cheap, mid]
        assert pricey not in chosen

    def test_as_discard_policy(self, make_game):
        strategy = AggroStrategy()
        game = make_game(discard_policy=strategy.choose_discards)
        hand = [place(game, make_avatar(f"Card {i}", 1, cost=i), "p1", ZoneType.HAND) for i in range(9)]
        game.start("p1")
        game.advance_to(Phase.TWILIGHT)
        assert game.state.players["p1"].crypt == hand[:2]
