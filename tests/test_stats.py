import io
import queue
import time

from s3bulk.stats import (
    AggregateStats,
    CopyResult,
    ResultAggregator,
    StatsReporter,
    format_stats_line,
)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_aggregator(start_time=100.0):
    return ResultAggregator(queue.Queue(), start_time=start_time)


class TestResultAggregator:
    def test_counts_results_until_closed(self):
        aggregator = make_aggregator()
        aggregator.results.put(CopyResult(path="a/b/c/d/1", bytes_transferred=10))
        aggregator.results.put(CopyResult(path="a/b/c/d/2", bytes_transferred=0, error=OSError("boom")))
        aggregator.results.put(CopyResult(path="a/b/c/d/3", bytes_transferred=5))
        aggregator.close()

        aggregator.run()

        stats = aggregator.snapshot()
        assert aggregator.drained.is_set()
        assert stats.processed == 3
        assert stats.errors == 1
        assert stats.successes == 2
        assert stats.total_bytes == 15

    def test_drained_only_after_close(self):
        aggregator = make_aggregator()
        aggregator.start()
        aggregator.results.put(CopyResult(path="a/b/c/d/1", bytes_transferred=1))

        assert not aggregator.wait_drained(timeout=0.1)

        aggregator.close()
        assert aggregator.wait_drained(timeout=5)
        assert aggregator.snapshot().processed == 1

    def test_snapshot_is_immutable_copy(self):
        aggregator = make_aggregator()
        before = aggregator.snapshot()
        aggregator.add(CopyResult(path="a/b/c/d/1", bytes_transferred=7))

        assert before.processed == 0
        assert aggregator.snapshot().processed == 1


def test_format_stats_line():
    stats = AggregateStats(processed=12, total_bytes=4096, errors=1, start_time=0.0)
    line = format_stats_line(3.2, stats, 1280, 3, 2048, 6)
    assert line == "     3s, 12 files ( 1 err), 4096 bytes, 1280 bytes/s, 3 files/s, lastinterval: 2048 bytes/s 6 files/s"


class TestStatsReporter:
    def test_tick_computes_cumulative_and_interval_rates(self):
        aggregator = make_aggregator(start_time=100.0)
        clock = FakeClock(110.0)
        out = io.StringIO()
        reporter = StatsReporter(aggregator, interval=2.0, out=out, clock=clock)
        for _ in range(5):
            aggregator.add(CopyResult(path="a/b/c/d/x", bytes_transferred=200))

        line = reporter.tick()

        assert line == "    10s, 5 files ( 0 err), 1000 bytes, 100 bytes/s, 0 files/s, lastinterval: 500 bytes/s 2 files/s"
        assert out.getvalue() == line + "\n"
        assert reporter.last_total_bytes == 1000
        assert reporter.last_processed == 5

    def test_interval_rates_use_previous_tick(self):
        aggregator = make_aggregator(start_time=0.0)
        clock = FakeClock(2.0)
        reporter = StatsReporter(aggregator, interval=2.0, out=io.StringIO(), clock=clock)
        for _ in range(4):
            aggregator.add(CopyResult(path="a/b/c/d/x", bytes_transferred=100))
        reporter.tick()

        clock.now = 4.0
        aggregator.add(CopyResult(path="a/b/c/d/y", bytes_transferred=100, error=OSError("down")))
        aggregator.add(CopyResult(path="a/b/c/d/z", bytes_transferred=100))
        line = reporter.tick()

        assert line == "     4s, 6 files ( 1 err), 600 bytes, 150 bytes/s, 1 files/s, lastinterval: 100 bytes/s 1 files/s"

    def test_non_positive_interval_disables_ticker(self):
        aggregator = make_aggregator(start_time=0.0)
        reporter = StatsReporter(aggregator, interval=0, out=io.StringIO(), clock=FakeClock(1.0))
        aggregator.add(CopyResult(path="a/b/c/d/x", bytes_transferred=10))

        reporter.start()
        assert reporter._thread is None
        line = reporter.tick()
        reporter.stop()

        assert line.endswith("lastinterval: 0 bytes/s 0 files/s")

    def test_ticker_prints_periodically(self):
        aggregator = make_aggregator()
        out = io.StringIO()
        reporter = StatsReporter(aggregator, interval=0.05, out=out)

        reporter.start()
        try:
            deadline = 50
            while out.getvalue().count("\n") < 2 and deadline:
                time.sleep(0.05)
                deadline -= 1
        finally:
            reporter.stop()

        assert out.getvalue().count("\n") >= 2
