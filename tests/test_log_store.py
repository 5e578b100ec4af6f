"""
Tests for the thread-safe log store
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from podlogai.log_store import LogStore


class TestLogStore:
    """Test append/snapshot/clear semantics"""

    def test_append_then_snapshot(self, make_entry):
        store = LogStore()
        entry = make_entry("hello")

        store.append(entry)

        assert entry in store.snapshot()
        assert len(store) == 1

    def test_snapshot_is_not_affected_by_later_appends(self, make_entry):
        store = LogStore()
        store.append(make_entry("first"))

        snapshot = store.snapshot()
        store.append(make_entry("second"))

        assert [e.content for e in snapshot] == ["first"]
        assert len(store.snapshot()) == 2

    def test_clear_empties_store(self, make_entry):
        store = LogStore()
        store.extend([make_entry("a"), make_entry("b")])

        store.clear()

        assert store.snapshot() == ()
        assert len(store) == 0

    def test_insertion_order_is_kept(self, make_entry):
        store = LogStore()
        for i in range(5):
            store.append(make_entry(f"line {i}"))

        assert [e.content for e in store.snapshot()] == [f"line {i}" for i in range(5)]


class TestLogStoreConcurrency:
    """Test concurrent producers"""

    def test_concurrent_appends_lose_nothing(self, make_entry):
        store = LogStore()
        producers, per_producer = 8, 500
        start = threading.Barrier(producers)

        def produce(producer_id):
            start.wait()
            for i in range(per_producer):
                store.append(make_entry(f"{producer_id}:{i}", pod_name=f"pod-{producer_id}"))

        with ThreadPoolExecutor(max_workers=producers) as pool:
            list(pool.map(produce, range(producers)))

        snapshot = store.snapshot()
        assert len(snapshot) == producers * per_producer
        assert len({e.content for e in snapshot}) == producers * per_producer

        # each producer's own entries keep the order they were appended in
        for producer_id in range(producers):
            own = [int(e.content.split(":")[1]) for e in snapshot if e.pod_name == f"pod-{producer_id}"]
            assert own == list(range(per_producer))

    def test_clear_during_appends_and_snapshots(self, make_entry):
        store = LogStore()
        producers, per_producer = 4, 3000
        producing = threading.Event()
        producing.set()
        broken = []
        taken = []

        def own_lines(snapshot, producer_id):
            return [int(e.content) for e in snapshot if e.pod_name == f"pod-{producer_id}"]

        def is_unbroken_run(lines):
            return lines == list(range(lines[0], lines[0] + len(lines))) if lines else True

        def produce(producer_id):
            for i in range(per_producer):
                store.append(make_entry(str(i), pod_name=f"pod-{producer_id}"))

        def clear_repeatedly():
            while producing.is_set():
                store.clear()

        def read_repeatedly():
            while producing.is_set():
                snapshot = store.snapshot()
                taken.append(len(snapshot))
                # after a clear each producer's surviving lines are an unbroken run of its own order
                if not all(is_unbroken_run(own_lines(snapshot, p)) for p in range(producers)):
                    broken.append(snapshot)

        background = [threading.Thread(target=clear_repeatedly),
                      threading.Thread(target=read_repeatedly)]
        for thread in background:
            thread.start()
        try:
            with ThreadPoolExecutor(max_workers=producers) as pool:
                list(pool.map(produce, range(producers)))
        finally:
            producing.clear()
            for thread in background:
                thread.join()

        assert taken
        assert broken == []

        # everything appended after the last clear is still there
        final = store.snapshot()
        expected = 0
        for producer_id in range(producers):
            own = own_lines(final, producer_id)
            if own:
                assert own == list(range(own[0], per_producer))
                expected += per_producer - own[0]
        assert len(final) == expected

        store.clear()
        store.append(make_entry("after"))
        assert [e.content for e in store.snapshot()] == ["after"]

    def test_snapshot_during_appends_is_consistent(self, make_entry):
        store = LogStore()
        done = threading.Event()
        sizes = []

        def reader():
            while not done.is_set():
                sizes.append(len(store.snapshot()))

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for i in range(2000):
                store.append(make_entry(str(i)))
        finally:
            done.set()
            thread.join()

        assert sizes == sorted(sizes)
        assert len(store) == 2000
