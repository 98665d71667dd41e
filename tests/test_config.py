"""
Tests for rule configuration.
"""

import pytest

from src.engine import Phase, ZoneType, RulesConfig, make_avatar

from helpers import place


class TestRulesConfig:

    def test_defaults(self):
        config = RulesConfig()
        assert config.max_resource == 13
        assert config.overflow_threshold == 13
        assert config.max_god_code_charges == 2
        assert config.god_code_min_turn == 4
        assert config.hand_limit == 7

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GODCODE_HAND_LIMIT", "5")
        monkeypatch.setenv("GODCODE_DEFAULT_STARTING_ESSENCE", "30")
        config = RulesConfig.from_env()
        assert config.hand_limit == 5
        assert config.default_starting_essence == 30
        assert config.max_resource == 13

    def test_from_env_rejects_non_integer(self, monkeypatch):
        monkeypatch.setenv("GODCODE_HAND_LIMIT", "seven")
        with pytest.raises(ValueError):
            RulesConfig.from_env()

    def test_custom_hand_limit_applies(self, make_game):
        game = make_game(config=RulesConfig(hand_limit=3))
        for i in range(5):
            place(game, make_avatar(f"Card {i}", 1), "p1", ZoneType.HAND)
        game.start("p1")
        game.advance_to(Phase.TWILIGHT)
        assert len(game.state.players["p1"].hand) == 3

    def test_game_reads_env_without_explicit_config(self, make_game, monkeypatch):
        monkeypatch.setenv("GODCODE_HAND_LIMIT", "4")
        assert make_game().config.hand_limit == 4
        assert make_game(config=RulesConfig()).config.hand_limit == 7

    def test_default_guard(self, make_game):
        game = make_game(config=RulesConfig(default_guard=2))
        iid = place(game, make_avatar("Plain", 1), "p1")
        assert game.get_guard(iid) == 2
