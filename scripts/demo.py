#!/usr/bin/env python3
"""
Demo script for phrase completion.

This script walks through recording transaction descriptions, querying
completions, decay over time, and quota eviction, using the in-memory store
so no Redis is needed.
"""

from phrase_completion import (
    CompletionService,
    EvictionPolicy,
    InMemoryPhraseRepository,
    PhraseCache,
    PhraseService,
)
from phrase_completion.utils import now_ms

DAY_MS = 86_400_000


class DemoClock:
    """Wall clock that can be pushed forward."""

    def __init__(self) -> None:
        self.offset = 0

    def __call__(self) -> int:
        return now_ms() + self.offset


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def print_query(completions: CompletionService, user_id: str, prefix: str) -> None:
    result = completions.query(user_id, prefix)
    source = "cache" if result.from_cache else "store"
    print(f"\n🔍 '{prefix}' ({source}, {result.query_time_ms:.3f}ms)")
    if not result.results:
        print("  (no suggestions)")
    for item in result.results:
        print(f"  {item.phrase:<24} +'{item.completion}'  score={item.score:.3f}")


def main() -> None:
    clock = DemoClock()
    store = InMemoryPhraseRepository()
    cache = PhraseCache(store)
    completions = CompletionService(store=store, cache=cache, clock=clock)
    phrases = PhraseService(
        store=store,
        cache=cache,
        eviction=EvictionPolicy(store, quota=10),
        clock=clock,
    )
    user_id = "demo-user"

    print_section("Recording transaction descriptions")
    history = ["买菜"] * 5 + ["买书", "买咖啡", "买咖啡", "打车去机场", "打车回家"]
    for phrase in history:
        record = phrases.upsert(user_id, phrase)
        print(f"  ✓ {record.phrase} (frequency={record.frequency})")

    print_section("Querying completions")
    print_query(completions, user_id, "买")
    print_query(completions, user_id, "打车")
    print_query(completions, user_id, "买菜")

    print_section("Decay: 30 days later, one fresh use")
    clock.offset += 30 * DAY_MS
    phrases.upsert(user_id, "买书")
    print_query(completions, user_id, "买")

    print_section("Quota eviction (quota=10 for the demo)")
    for i in range(8):
        phrases.upsert(user_id, f"午餐 {i}")
    print(f"  active phrases: {store.count_active(user_id)}")
    print_query(completions, user_id, "买")
    print_query(completions, user_id, "打车")

    print_section("Metrics")
    for key, value in completions.metrics.to_dict().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
