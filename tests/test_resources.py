"""
Tests for the KL resource ledger.

- Dawn refill and the max cap
- Overflow banking and God Code charge conversion
- Spending, refunds and the turn-4 God Code gate
"""

import pytest

from src.engine import (
    EventType, InsufficientResourceError, GodCodeUnavailableError, RulesConfig
)

from helpers import give_kl


def ledger(game, player_id="p1"):
    return game.state.players[player_id].resource


class TestRefill:

    def test_refill_grows_max_and_fills_current(self, game):
        game.resources.refill_at_dawn("p1")
        assert ledger(game).max == 1
        assert ledger(game).current == 1

        ledger(game).current = 0
        game.resources.refill_at_dawn("p1")
        assert ledger(game).max == 2
        assert ledger(game).current == 2

    def test_max_capped_at_13(self, game):
        give_kl(game, "p1", 13)
        game.resources.refill_at_dawn("p1")
        assert ledger(game).max == 13
        assert ledger(game).current == 13

    def test_ledger_bounds_hold_over_many_refills(self, game):
        for _ in range(30):
            game.resources.refill_at_dawn("p1")
            game.resources.adjust("p1", 4)
            game.resources.spend("p1", 1)
            lg = ledger(game)
            assert 0 <= lg.current <= lg.max <= 13
            assert 0 <= lg.god_code_charges <= 2


class TestAdjust:

    def test_gain_within_max(self, game):
        give_kl(game, "p1", 5)
        ledger(game).current = 2
        game.resources.adjust("p1", 3)
        assert ledger(game).current == 5
        assert ledger(game).overflow == 0

    def test_gain_past_max_banks_overflow(self, game):
        give_kl(game, "p1", 5)
        ledger(game).current = 3
        game.resources.adjust("p1", 5)
        assert ledger(game).current == 5
        assert ledger(game).overflow == 3

    def test_loss_floors_at_zero(self, game):
        give_kl(game, "p1", 4)
        game.resources.adjust("p1", -10)
        assert ledger(game).current == 0
        assert ledger(game).overflow == 0


class TestOverflow:

    def test_thirteen_overflow_is_one_charge(self, game):
        game.resources.bank_overflow("p1", 13)
        assert ledger(game).god_code_charges == 1
        assert ledger(game).overflow == 0

    def test_partial_overflow_accumulates(self, game):
        game.resources.bank_overflow("p1", 12)
        assert ledger(game).god_code_charges == 0
        game.resources.bank_overflow("p1", 1)
        assert ledger(game).god_code_charges == 1
        assert ledger(game).overflow == 0

    def test_multiple_conversions_in_one_bank(self, game):
        game.resources.bank_overflow("p1", 30)
        assert ledger(game).god_code_charges == 2
        assert ledger(game).overflow == 4

    def test_conversion_at_cap_is_discarded(self, game):
        ledger(game).god_code_charges = 2
        game.resources.bank_overflow("p1", 15)
        assert ledger(game).god_code_charges == 2
        assert ledger(game).overflow == 2

    def test_third_charge_worth_of_overflow_is_lost(self, game):
        game.resources.bank_overflow("p1", 39)
        assert ledger(game).god_code_charges == 2
        assert ledger(game).overflow == 0

    def test_charge_event_per_conversion(self, game):
        game.resources.bank_overflow("p1", 26)
        charged = game.pipeline.events_of(EventType.GOD_CODE_CHARGED)
        assert [e.payload['charges'] for e in charged] == [1, 2]

    def test_custom_threshold(self, make_game):
        game = make_game(config=RulesConfig(overflow_threshold=5))
        game.resources.bank_overflow("p1", 11)
        assert ledger(game).god_code_charges == 2
        assert ledger(game).overflow == 1


class TestSpend:

    def test_spend_reduces_current(self, game):
        give_kl(game, "p1", 6)
        game.resources.spend("p1", 4)
        assert ledger(game).current == 2

    def test_insufficient_spend_changes_nothing(self, game):
        give_kl(game, "p1", 3)
        history_before = len(game.pipeline.history)
        with pytest.raises(InsufficientResourceError):
            game.resources.spend("p1", 4)
        assert ledger(game).current == 3
        assert len(game.pipeline.history) == history_before

    def test_refund_restores_exact_amount(self, game):
        give_kl(game, "p1", 5)
        game.resources.spend("p1", 5)
        game.resources.refund("p1", 5)
        assert ledger(game).current == 5
        assert ledger(game).overflow == 0

    def test_refund_caps_at_max(self, game):
        give_kl(game, "p1", 5)
        game.resources.spend("p1", 3)
        game.resources.adjust("p1", 3)
        game.resources.refund("p1", 3)
        assert ledger(game).current == 5
        assert ledger(game).overflow == 0

    def test_every_change_emits_resource_changed(self, game):
        give_kl(game, "p1", 5)
        game.resources.spend("p1", 2)
        game.resources.adjust("p1", 1)
        reasons = [e.payload['reason'] for e in game.pipeline.events_of(EventType.RESOURCE_CHANGED)]
        assert reasons == ['spend', 'adjust']


class TestGodCodeGate:

    def test_unavailable_before_turn_4(self, game):
        ledger(game).god_code_charges = 1
        game.state.turn_number = 3
        with pytest.raises(GodCodeUnavailableError):
            game.resources.spend_god_code_charge("p1")
        assert ledger(game).god_code_charges == 1

    def test_unavailable_without_charges(self, game):
        game.state.turn_number = 4
        with pytest.raises(GodCodeUnavailableError):
            game.resources.spend_god_code_charge("p1")

    def test_spend_charge_from_turn_4(self, game):
        ledger(game).god_code_charges = 2
        game.state.turn_number = 4
        game.resources.spend_god_code_charge("p1")
        assert ledger(game).god_code_charges == 1
