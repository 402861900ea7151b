"""
Tests for subscriber failures and re-entrant dispatch.

A failing subscriber must not stop the others, and dispatch() from inside
a notification is queued until the current notification loop is done.
"""
import logging

import pytest

from minstore import Action, ReentrantDispatchError, StoreConfig, create_store
from minstore.core.state.reducer import counter_reducer


@pytest.fixture
def store():
    """Counter store."""
    return create_store(counter_reducer)


class TestSubscriberIsolation:
    """Failing subscribers are logged and skipped."""
    
    def test_remaining_subscribers_still_notified(self, store):
        """A raising listener does not block later listeners."""
        calls = []
        
        def bad():
            raise RuntimeError("render failed")
        
        store.subscribe(lambda: calls.append("first"))
        store.subscribe(bad)
        store.subscribe(lambda: calls.append("third"))
        
        store.dispatch(Action("INC"))
        
        assert calls == ["first", "third"]
        assert store.get_state() == 1
    
    def test_dispatch_does_not_raise(self, store):
        """Subscriber errors are not propagated to the dispatcher."""
        store.subscribe(lambda: 1 / 0)
        store.dispatch(Action("INC"))
        store.dispatch(Action("INC"))
        assert store.get_state() == 2
    
    def test_failure_is_logged_with_traceback(self, store, caplog):
        """The failure is logged at ERROR with exception info."""
        def bad():
            raise RuntimeError("render failed")
        
        store.subscribe(bad)
        with caplog.at_level(logging.ERROR, logger="minstore.core.state.store"):
            store.dispatch(Action("INC"))
        
        records = [r for r in caplog.records if "render failed" in r.getMessage()]
        assert len(records) == 1
        assert records[0].exc_info is not None
        assert records[0].action == "INC"
    
    def test_failure_is_counted(self, store):
        """Subscriber errors appear in the store metrics."""
        store.subscribe(lambda: 1 / 0)
        store.dispatch(Action("INC"))
        
        assert store.metrics.get_errors("subscriber") == 1
        assert store.metrics.get_errors("transition") == 0
    
    def test_keyboard_interrupt_not_swallowed(self, store):
        """Only Exception subclasses are isolated."""
        def interrupt():
            raise KeyboardInterrupt
        
        store.subscribe(interrupt)
        with pytest.raises(KeyboardInterrupt):
            store.dispatch(Action("INC"))

    def test_interrupt_discards_queued_dispatches(self, store):
        """Actions queued before an interrupt are not applied later."""
        def queue_add():
            if store.get_state() == 1:
                store.dispatch(Action("ADD", {"amount": 100}))

        def interrupt():
            if store.get_state() == 1:
                raise KeyboardInterrupt

        store.subscribe(queue_add)
        store.subscribe(interrupt)

        with pytest.raises(KeyboardInterrupt):
            store.dispatch(Action("INC"))
        assert store.get_state() == 1

        store.dispatch(Action("INC"))

        assert store.get_state() == 2
        assert store.seq == 2
        assert [r.kind for r in store.get_action_log()][1:] == ["INC", "INC"]


class TestReentrantDispatch:
    """dispatch() from inside a subscriber."""
    
    def test_nested_dispatch_runs_after_current_loop(self, store):
        """Every listener sees state 1 before anyone sees state 2."""
        seen = []
        
        def first():
            seen.append(("first", store.get_state()))
            if store.get_state() == 1:
                store.dispatch(Action("INC"))
                seen.append(("first-after-dispatch", store.get_state()))
        
        def second():
            seen.append(("second", store.get_state()))
        
        store.subscribe(first)
        store.subscribe(second)
        store.dispatch(Action("INC"))
        
        assert seen == [
            ("first", 1),
            ("first-after-dispatch", 1),
            ("second", 1),
            ("first", 2),
            ("second", 2),
        ]
        assert store.get_state() == 2
    
    def test_queued_actions_apply_in_call_order(self, store):
        """Several queued dispatches apply FIFO."""
        done = []
        
        def listener():
            if not done:
                done.append(True)
                store.dispatch(Action("ADD", {"amount": 10}))
                store.dispatch(Action("DEC"))
        
        store.subscribe(listener)
        store.dispatch(Action("INC"))
        
        kinds = [r.kind for r in store.get_action_log()][1:]
        assert kinds == ["INC", "ADD", "DEC"]
        assert store.get_state() == 10
    
    def test_queue_bound_stops_runaway_subscriber(self):
        """A subscriber that always dispatches is cut off at the limit."""
        store = create_store(counter_reducer, config=StoreConfig(max_queued_dispatches=3))
        store.subscribe(lambda: store.dispatch(Action("INC")))
        
        store.dispatch(Action("INC"))

        # The outer action plus three queued ones; the fourth attempt is refused
        assert store.get_state() == 4
        assert store.metrics.get_counter("queued") == 3
        assert store.metrics.get_counter("dropped") == 1
        assert store.metrics.get_errors("subscriber") == 1

    def test_queue_budget_resets_per_outer_dispatch(self):
        """Each top-level dispatch gets a fresh budget."""
        store = create_store(counter_reducer, config=StoreConfig(max_queued_dispatches=1))

        def listener():
            if store.get_state() % 2 == 1:
                store.dispatch(Action("INC"))

        store.subscribe(listener)
        store.dispatch(Action("INC"))
        store.dispatch(Action("INC"))

        assert store.get_state() == 4
        assert store.metrics.get_counter("dropped") == 0
    
    def test_zero_queue_rejects_reentrant_dispatch(self):
        """max_queued_dispatches=0 turns re-entrant dispatch into an error."""
        store = create_store(counter_reducer, config=StoreConfig(max_queued_dispatches=0))
        errors = []
        
        def listener():
            try:
                store.dispatch(Action("INC"))
            except ReentrantDispatchError as e:
                errors.append(e)
        
        store.subscribe(listener)
        store.dispatch(Action("INC"))
        
        assert len(errors) == 1
        assert errors[0].limit == 0
        assert store.get_state() == 1
        assert store.metrics.get_counter("dropped") == 1
    
    def test_failing_queued_action_propagates_and_discards_rest(self, store):
        """A queued reducer failure reaches the outer caller."""
        def listener():
            if store.get_state() == 1:
                store.dispatch(Action("ADD", {"amount": "ten"}))
                store.dispatch(Action("INC"))
        
        store.subscribe(listener)
        
        with pytest.raises(TypeError):
            store.dispatch(Action("INC"))
        
        assert store.get_state() == 1
        
        store.dispatch(Action("INC"))
        assert store.get_state() == 2
