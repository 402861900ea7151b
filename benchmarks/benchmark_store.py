"""
Performance benchmarks for the store.

Run standalone: python benchmarks/benchmark_store.py
"""
import statistics
import time
from typing import Tuple

from minstore import Action, StoreConfig, create_store
from minstore.core.state.reducer import counter_action, counter_reducer, reduce_actions


def benchmark(fn, iterations: int = 1000) -> Tuple[float, float, float]:
    """
    Benchmark a function.
    
    Returns:
        (mean_ms, min_ms, max_ms)
    """
    times = []
    
    for _ in range(iterations):
        start = time.perf_counter()
        fn()
        elapsed = (time.perf_counter() - start) * 1000
        times.append(elapsed)
    
    return (
        statistics.mean(times),
        min(times),
        max(times),
    )


def report(label: str, result: Tuple[float, float, float]) -> float:
    mean, min_t, max_t = result
    print(f"{label}:")
    print(f"  Mean: {mean:.4f}ms  Min: {min_t:.4f}ms  Max: {max_t:.4f}ms")
    return mean


def benchmark_reduce_actions():
    """Fold of 100 counter actions."""
    actions = [counter_action("INC") for _ in range(50)] + [counter_action("ADD", 2) for _ in range(50)]
    return report(
        "reduce_actions (100 actions)",
        benchmark(lambda: reduce_actions(counter_reducer, 0, actions), iterations=1000),
    )


def benchmark_dispatch(listeners: int):
    """Single dispatch with N no-op subscribers."""
    store = create_store(counter_reducer, config=StoreConfig(history_size=100))
    for _ in range(listeners):
        store.subscribe(lambda: None)
    action = Action("INC")
    return report(
        f"dispatch ({listeners} subscribers)",
        benchmark(lambda: store.dispatch(action), iterations=10000),
    )


def benchmark_get_state():
    store = create_store(counter_reducer)
    return report("get_state", benchmark(store.get_state, iterations=10000))


def main():
    print("=" * 50)
    print("minstore benchmarks")
    print("=" * 50)
    results = {
        "reduce_actions": benchmark_reduce_actions(),
        "dispatch_0": benchmark_dispatch(0),
        "dispatch_10": benchmark_dispatch(10),
        "get_state": benchmark_get_state(),
    }
    print("=" * 50)
    for name, mean in results.items():
        print(f"  {name:<16} {mean:.4f}ms")


if __name__ == "__main__":
    main()
