"""
Tests for the event bus: ordering, re-entrancy, unsubscription and error
propagation.
"""

import pytest

from src.engine import Event, EventType, ZoneType


class TestSubscription:

    def test_handlers_run_in_subscription_order(self, game):
        calls = []
        game.subscribe(EventType.CARD_DRAWN, lambda e, s: calls.append("first"))
        game.subscribe(EventType.CARD_DRAWN, lambda e, s: calls.append("second"))
        game.subscribe(None, lambda e, s: calls.append(f"any:{e.type.name}") if e.type == EventType.CARD_DRAWN else None)

        game.zones.draw_card("p1")
        assert calls == ["first", "second", "any:CARD_DRAWN"]

    def test_kind_filter(self, game):
        seen = []
        game.subscribe(EventType.ESSENCE_CHANGED, lambda e, s: seen.append(e.type))
        game.zones.draw_card("p1")
        assert seen == []
        game.change_essence("p1", -1)
        assert seen == [EventType.ESSENCE_CHANGED]

    def test_unsubscribe(self, game):
        seen = []
        token = game.subscribe(EventType.CARD_DRAWN, lambda e, s: seen.append(e))
        assert game.unsubscribe(token)
        assert not game.unsubscribe(token)
        game.zones.draw_card("p1")
        assert seen == []

    def test_unsubscribe_during_dispatch_keeps_current_event(self, game):
        seen = []
        tokens = {}

        def once(event, state):
            seen.append(event.payload['instance_id'])
            game.unsubscribe(tokens['once'])

        tokens['once'] = game.subscribe(EventType.CARD_DRAWN, once)
        game.zones.draw_card("p1")
        game.zones.draw_card("p1")
        assert len(seen) == 1


class TestDispatch:

    def test_timestamps_increase(self, game):
        game.start("p1")
        stamps = [e.timestamp for e in game.pipeline.history]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_reentrant_emit_is_nested(self, game):
        """A handler's own operations emit before the outer emit returns."""
        order = []

        def on_draw(event, state):
            order.append("draw")
            game.change_essence(event.payload['player'], 2)
            order.append("after-gain")

        game.subscribe(EventType.CARD_DRAWN, on_draw)
        game.subscribe(EventType.ESSENCE_CHANGED, lambda e, s: order.append("gain"))

        game.zones.draw_card("p1")
        assert order == ["draw", "gain", "after-gain"]
        assert game.state.players["p1"].essence == 27

        kinds = [e.type for e in game.pipeline.history]
        assert kinds.index(EventType.CARD_DRAWN) < kinds.index(EventType.ESSENCE_CHANGED)

    def test_handler_error_propagates_after_commit(self, game):
        p1 = game.state.players["p1"]
        top = p1.deck[0]

        def explode(event, state):
            raise ValueError("handler failed")

        game.subscribe(EventType.ZONE_CHANGED, explode)
        with pytest.raises(ValueError, match="handler failed"):
            game.move_card(top, ZoneType.DECK, ZoneType.HAND)

        # The move itself is already done
        assert top in p1.hand

    def test_runaway_trigger_loop_is_stopped(self, game):
        def loop(event, state):
            game.emit(Event(type=EventType.PHASE_CHANGED))

        game.subscribe(EventType.PHASE_CHANGED, loop)
        with pytest.raises(RuntimeError):
            game.emit(Event(type=EventType.PHASE_CHANGED))

    def test_history_records_every_event(self, game):
        game.zones.draw_card("p1")
        kinds = [e.type for e in game.pipeline.history]
        assert kinds == [EventType.ZONE_CHANGED, EventType.CARD_DRAWN]

    def test_history_limit_keeps_newest(self, make_game):
        game = make_game(history_limit=2)
        seen = []
        game.subscribe(EventType.CARD_DRAWN, lambda e, s: seen.append(e.payload))
        for _ in range(3):
            game.zones.draw_card("p1")

        assert len(seen) == 3
        assert [e.type for e in game.pipeline.history] == [EventType.ZONE_CHANGED, EventType.CARD_DRAWN]
        assert game.pipeline.history[-1].timestamp == game.state.timestamp
