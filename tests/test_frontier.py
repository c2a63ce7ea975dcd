"""
Tests for the breadth-first frontier.
"""
import threading
import time

from linkscan.frontier import Admission, Frontier


def drain(frontier):
    urls = []
    while (entry := frontier.dequeue(timeout=0)) is not None:
        urls.append(entry.url)
        frontier.complete(entry.url)
    return urls


class TestEnqueue:
    def test_admits_once(self):
        f = Frontier(max_depth=5, max_urls=10)
        assert f.enqueue("https://example.com/", 0) is Admission.ADMITTED
        assert f.enqueue("https://example.com/", 0) is Admission.DUPLICATE
        assert f.queued_count == 1

    def test_rejects_too_deep(self):
        f = Frontier(max_depth=1, max_urls=10)
        assert f.enqueue("https://example.com/deep", 2) is Admission.TOO_DEEP
        assert f.exhausted

    def test_budget_counts_queued_in_flight_and_visited(self):
        f = Frontier(max_depth=5, max_urls=3)
        f.enqueue("u1", 0)
        f.enqueue("u2", 1)
        entry = f.dequeue(timeout=0)
        f.complete(entry.url)
        f.enqueue("u3", 1)
        assert f.enqueue("u4", 1) is Admission.OVER_BUDGET
        assert f.budget_hit

    def test_in_flight_and_visited_are_duplicates(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("u", 0)
        entry = f.dequeue(timeout=0)
        assert f.enqueue("u", 1) is Admission.DUPLICATE
        f.complete(entry.url)
        assert f.enqueue("u", 1) is Admission.DUPLICATE
        assert f.visited_count == 1

    def test_closed_rejects_new_urls(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("u", 0)
        f.close()
        assert f.enqueue("v", 1) is Admission.CLOSED
        assert f.enqueue("u", 1) is Admission.DUPLICATE
        assert f.dequeue(timeout=0) is None

    def test_admission_known(self):
        assert Admission.ADMITTED.known
        assert Admission.DUPLICATE.known
        assert not Admission.OVER_BUDGET.known
        assert not Admission.TOO_DEEP.known


class TestDequeue:
    def test_shallowest_depth_first(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("d2-a", 2)
        f.enqueue("d1-a", 1)
        f.enqueue("d2-b", 2)
        f.enqueue("d1-b", 1)
        assert drain(f) == ["d1-a", "d1-b", "d2-a", "d2-b"]

    def test_shorter_path_moves_url_up(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("x", 3)
        f.enqueue("y", 2)
        assert f.enqueue("x", 1) is Admission.DUPLICATE
        entry = f.dequeue(timeout=0)
        assert (entry.url, entry.depth) == ("x", 1)
        f.complete("x")
        # The stale depth-3 copy is never handed out
        assert drain(f) == ["y"]

    def test_expand_flag_is_kept(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("ext", 1, expand=False)
        entry = f.dequeue(timeout=0)
        assert entry.expand is False

    def test_admit_false_leaves_work_queued(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("u", 0)
        assert f.dequeue(timeout=0, admit=lambda: False) is None
        assert f.queued_count == 1

    def test_returns_none_when_exhausted(self):
        f = Frontier(max_depth=5, max_urls=10)
        assert f.dequeue(timeout=5) is None
        assert f.exhausted

    def test_waits_for_in_flight_work_to_produce_more(self):
        f = Frontier(max_depth=5, max_urls=10)
        f.enqueue("parent", 0)
        parent = f.dequeue(timeout=0)

        def produce():
            time.sleep(0.05)
            f.enqueue("child", 1)
            f.complete(parent.url)

        threading.Thread(target=produce).start()
        entry = f.dequeue(timeout=5)
        assert entry is not None and entry.url == "child"

    def test_each_url_claimed_by_exactly_one_worker(self):
        f = Frontier(max_depth=5, max_urls=1000)
        for i in range(500):
            f.enqueue(f"u{i}", 1)

        claimed = []
        lock = threading.Lock()

        def worker():
            while (entry := f.dequeue(timeout=0)) is not None:
                with lock:
                    claimed.append(entry.url)
                f.complete(entry.url)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(claimed) == 500
        assert len(set(claimed)) == 500
        assert f.exhausted
