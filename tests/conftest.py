"""
Shared fixtures for God Code engine tests.
"""

import pytest

from src.engine import Game, make_deity

from helpers import recruits


@pytest.fixture
def make_game():
    """
    Factory for an unstarted two-player match: p1 (Alice) and p2 (Bram),
    each with a deity and a 10-card deck unless overridden.
    """
    def _make(
        p1_deck=None,
        p2_deck=None,
        p1_essence=25,
        p2_essence=25,
        p1_deity=None,
        p2_deity=None,
        **game_kwargs
    ) -> Game:
        game = Game(**game_kwargs)
        game.add_player(
            "Alice",
            p1_deity or make_deity("Solara", starting_essence=p1_essence),
            recruits(10, "Dawnguard") if p1_deck is None else p1_deck,
            player_id="p1",
        )
        game.add_player(
            "Bram",
            p2_deity or make_deity("Umbros", starting_essence=p2_essence),
            recruits(10, "Nightguard") if p2_deck is None else p2_deck,
            player_id="p2",
        )
        return game

    return _make


@pytest.fixture
def game(make_game):
    """Default match, not yet started."""
    return make_game()
