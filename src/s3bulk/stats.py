"""
Агрегация результатов загрузки и периодический вывод скорости.

ResultAggregator — единственный поток, который меняет счётчики. Остальные
получают неизменяемый снимок через snapshot().
"""
from __future__ import annotations

import logging
import queue
import sys
import threading
import time
from dataclasses import dataclass
from typing import Optional, TextIO

logger = logging.getLogger(__name__)

# Маркер конца потока результатов
END_OF_RESULTS = object()


@dataclass(frozen=True)
class CopyResult:
    path: str
    bytes_transferred: int = 0
    error: Optional[BaseException] = None
    endpoint: Optional[str] = None
    etag: Optional[str] = None
    version_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class AggregateStats:
    processed: int
    total_bytes: int
    errors: int
    start_time: float

    @property
    def successes(self) -> int:
        return self.processed - self.errors


class ResultAggregator:
    def __init__(self, results: queue.Queue, debug: bool = False, start_time: Optional[float] = None):
        self.results = results
        self.debug = debug
        self.start_time = time.monotonic() if start_time is None else start_time
        self.drained = threading.Event()
        self._lock = threading.Lock()
        self._processed = 0
        self._total_bytes = 0
        self._errors = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="aggregator", daemon=True)
        self._thread.start()

    def run(self) -> None:
        try:
            while True:
                item = self.results.get()
                if item is END_OF_RESULTS:
                    break
                self.add(item)
        finally:
            self.drained.set()

    def add(self, result: CopyResult) -> None:
        if self.debug:
            logger.debug("Read stats for %s size %d", result.path, result.bytes_transferred)
        with self._lock:
            self._processed += 1
            self._total_bytes += result.bytes_transferred
            if result.error is not None:
                self._errors += 1

    def close(self) -> None:
        """Закрывает поток результатов. Вызывать после завершения всех воркеров."""
        self.results.put(END_OF_RESULTS)

    def wait_drained(self, timeout: Optional[float] = None) -> bool:
        return self.drained.wait(timeout)

    def snapshot(self) -> AggregateStats:
        with self._lock:
            return AggregateStats(
                processed=self._processed,
                total_bytes=self._total_bytes,
                errors=self._errors,
                start_time=self.start_time,
            )


def format_stats_line(
    elapsed: float,
    stats: AggregateStats,
    bytes_per_sec: int,
    files_per_sec: int,
    last_bytes_per_sec: int,
    last_files_per_sec: int,
) -> str:
    return (
        f"{elapsed:6.0f}s, {stats.processed} files ( {stats.errors} err), {stats.total_bytes} bytes, "
        f"{bytes_per_sec} bytes/s, {files_per_sec} files/s, "
        f"lastinterval: {last_bytes_per_sec} bytes/s {last_files_per_sec} files/s"
    )


class StatsReporter:
    """Раз в interval секунд печатает накопленную и интервальную скорость.

    Хранит last_processed и last_total_bytes у себя, а не в AggregateStats:
    агрегатор остаётся единственным, кто пишет счётчики. Поэтому tick()
    не чистая функция от снимка.
    interval <= 0 отключает периодический вывод.
    """

    def __init__(self, aggregator: ResultAggregator, interval: float, out: Optional[TextIO] = None, clock=time.monotonic):
        self.aggregator = aggregator
        self.interval = interval
        self.out = out if out is not None else sys.stdout
        self.clock = clock
        self.last_processed = 0
        self.last_total_bytes = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    def tick(self) -> str:
        stats = self.aggregator.snapshot()
        elapsed = max(self.clock() - stats.start_time, 1e-6)
        bytes_per_sec = int(stats.total_bytes / elapsed)
        files_per_sec = int(stats.processed / elapsed)
        if self.enabled:
            last_bytes_per_sec = int((stats.total_bytes - self.last_total_bytes) / self.interval)
            last_files_per_sec = int((stats.processed - self.last_processed) / self.interval)
        else:
            last_bytes_per_sec = last_files_per_sec = 0
        self.last_total_bytes = stats.total_bytes
        self.last_processed = stats.processed
        line = format_stats_line(elapsed, stats, bytes_per_sec, files_per_sec, last_bytes_per_sec, last_files_per_sec)
        print(line, file=self.out, flush=True)
        return line

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def start(self) -> None:
        if not self.enabled:
            logger.debug("Status updates disabled (timerInterval=%s)", self.interval)
            return
        self._thread = threading.Thread(target=self._run, name="stats", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
