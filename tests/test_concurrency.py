"""
Tests for thread safety.

Concurrent dispatches must apply in a total order, and readers on other
threads must never see a state whose notifications are still running.
"""
import threading
import time

from minstore import Action, create_store
from minstore.core.state.reducer import counter_reducer


def append_reducer(state, action):
    """Keeps the order actions were applied in."""
    if state is None:
        return ()
    return state + (action,)


class TestConcurrentDispatch:
    """Dispatch from many threads."""
    
    def test_no_lost_updates(self):
        """Every dispatch from every thread is applied exactly once."""
        store = create_store(counter_reducer)
        
        def worker():
            for _ in range(200):
                store.dispatch(Action("INC"))
        
        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert store.get_state() == 1600
        assert store.seq == 1600
    
    def test_notification_order_matches_apply_order(self):
        """Listeners observe states in the same total order they were applied."""
        store = create_store(append_reducer)
        observed = []
        store.subscribe(lambda: observed.append(len(store.get_state())))
        
        def worker(n):
            for i in range(50):
                store.dispatch((n, i))
        
        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert observed == list(range(1, 201))
        final = store.get_state()
        for n in range(4):
            assert [i for (m, i) in final if m == n] == list(range(50))
    
    def test_reader_waits_for_notifications(self):
        """get_state() on another thread blocks until notification ends."""
        store = create_store(counter_reducer)
        in_listener = threading.Event()
        release = threading.Event()
        read = []
        
        def slow_listener():
            in_listener.set()
            release.wait(timeout=5)
        
        store.subscribe(slow_listener)
        
        dispatcher = threading.Thread(target=lambda: store.dispatch(Action("INC")))
        dispatcher.start()
        assert in_listener.wait(timeout=5)
        
        reader = threading.Thread(target=lambda: read.append(store.get_state()))
        reader.start()
        time.sleep(0.05)
        
        assert read == []
        
        release.set()
        dispatcher.join(timeout=5)
        reader.join(timeout=5)
        
        assert read == [1]
    
    def test_other_thread_dispatch_is_not_queued(self):
        """Only same-thread dispatches during notification are queued."""
        store = create_store(counter_reducer)
        
        store.subscribe(lambda: None)
        threads = [
            threading.Thread(target=lambda: store.dispatch(Action("INC")))
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert store.metrics.get_counter("queued") == 0
        assert store.metrics.get_counter("dispatches") == 5
