"""
Tests for pydantic state snapshots.
"""

import json

from src.engine import GameSnapshot, Phase, ZoneType, make_avatar, snapshot

from helpers import place


class TestSnapshot:

    def test_snapshot_shape(self, game):
        squire = place(game, make_avatar("Squire", 2, guard=3), "p1")
        game.start("p1")
        snap = game.snapshot()

        assert isinstance(snap, GameSnapshot)
        assert snap.turn_number == 1
        assert snap.phase == "DAWN"
        assert snap.active_player == "p1"
        p1 = next(p for p in snap.players if p.id == "p1")
        assert squire in p1.zones["AVATAR_ROW"]
        assert p1.resource.max == 1
        card = next(c for c in snap.cards if c.instance_id == squire)
        assert card.card_type == "AVATAR"
        assert card.template_id == "squire"

    def test_snapshot_is_json_serializable(self, game):
        game.start("p1")
        data = json.loads(game.snapshot().model_dump_json())
        assert data["phase"] == "DAWN"
        assert len(data["players"]) == 2

    def test_snapshot_ignores_event_count(self, game):
        before = snapshot(game.state)
        game.pipeline.history.clear()
        game.state.timestamp += 50
        assert snapshot(game.state) == before

    def test_snapshot_tracks_changes(self, game):
        game.start("p1")
        before = game.snapshot()
        game.advance_to(Phase.MAIN)
        assert game.snapshot() != before

    def test_outcome_and_combat_recorded(self, make_game):
        game = make_game(p2_essence=1)
        raider = place(game, make_avatar("Raider", 2), "p1")
        game.start("p1")
        game.advance_to(Phase.CLASH)
        game.declare_attacker("p1", raider, game.state.players["p2"].deity_id)

        snap = game.snapshot()
        assert snap.combat.step == "SELECTING_ATTACKERS"
        assert snap.combat.attacks[0].attacker_id == raider

        game.close_attacks("p1")
        game.resolve_combat()
        snap = game.snapshot()
        assert snap.outcome.winner == "p1"
        assert snap.outcome.reason == "essence"
        assert next(c for c in snap.cards if c.instance_id == raider).zone == ZoneType.AVATAR_ROW.name
