"""Tests for concurrent use of the field cache and validator."""

from dataclasses import dataclass
from threading import Barrier, Thread

from dataknobs_validator import Validator, field


@dataclass
class Item:
    sku: str = field("required,alphaNum", name="sku", default="")
    quantity: int = field("gte=1", name="quantity", default=0)


@dataclass
class Order:
    reference: str = field("required", name="reference", default="")
    items: list[Item] = field(name="items", default_factory=list)


def run_threads(target, count=8):
    barrier = Barrier(count)
    results = [None] * count

    def worker(index):
        barrier.wait()
        results[index] = target()

    threads = [Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results


class TestConcurrentAccess:
    """Test that concurrent callers observe one consistent state."""

    def test_single_cache_entry(self):
        """Test that racing lookups all receive the stored entry."""
        validator = Validator()
        entries = run_threads(lambda: validator.cache.fields_of(Order))
        assert all(entry is entries[0] for entry in entries)
        assert validator.cache.lookup(Order) is entries[0]

    def test_concurrent_validation(self):
        """Test that racing validations report the same errors."""
        validator = Validator()
        order = Order(items=[Item(sku="A-1", quantity=0)])

        def check():
            return [(e.name, e.tag) for e in validator.validate(order)]

        results = run_threads(check)
        assert results[0] == [
            ("reference", "required"),
            ("items.0.sku", "alphaNum"),
            ("items.0.quantity", "gte"),
        ]
        assert all(result == results[0] for result in results)
