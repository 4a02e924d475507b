"""
Конвейер загрузки: PathProducer -> ограниченная очередь путей -> пул воркеров,
привязанных к endpoint'ам -> очередь результатов -> ResultAggregator.

Всё на потоках и queue.Queue; общих изменяемых счётчиков нет.
"""
from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, TextIO

from .errors import EndpointSetupError, FileListError, MalformedPathError
from .keys import local_path, object_key
from .stats import AggregateStats, CopyResult, ResultAggregator, StatsReporter
from .storage import make_client, put_object

logger = logging.getLogger(__name__)

# Маркер конца очереди путей, по одному на каждого воркера
END_OF_PATHS = None


@dataclass(frozen=True)
class WorkerConfig:
    index: int
    endpoint: str
    bucket: str
    access_key_id: str
    secret_access_key: str
    ssl: bool = False
    region: str = "us-east-1"


def build_worker_configs(settings) -> tuple[WorkerConfig, ...]:
    """Статическая round-robin привязка: воркер i -> endpoints[i % len(endpoints)]."""
    endpoints = list(settings.endpoints)
    return tuple(
        WorkerConfig(
            index=i,
            endpoint=endpoints[i % len(endpoints)],
            bucket=settings.bucket,
            access_key_id=settings.access_key_id,
            secret_access_key=settings.secret_access_key,
            ssl=settings.ssl,
            region=settings.region,
        )
        for i in range(settings.max_workers)
    )


class PathProducer:
    """Читает пути по одному и кладёт в очередь; при заполнении очереди блокируется."""

    def __init__(self, source: Iterable[str], work_queue: queue.Queue, consumers: int, on_close: Optional[Callable[[], None]] = None):
        self.source = source
        self.work_queue = work_queue
        self.consumers = consumers
        self.on_close = on_close
        self.count = 0
        self.error: Optional[BaseException] = None
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_file(cls, path: str, work_queue: queue.Queue, consumers: int) -> "PathProducer":
        try:
            # Невалидные байты сохраняются как есть; такой путь станет ошибкой конкретного файла
            fh = open(path, "r", encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            raise FileListError(f"Cannot open file list {path}: {exc}") from exc
        return cls(fh, work_queue, consumers, on_close=fh.close)

    def run(self) -> None:
        try:
            for line in self.source:
                self.work_queue.put(line.rstrip("\r\n"))
                self.count += 1
        except Exception as exc:
            logger.error("Reading file list failed after %d lines: %s", self.count, exc)
            self.error = exc
        finally:
            self.close()
        logger.info("Read in %d lines", self.count)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.on_close is not None:
            self.on_close()
        for _ in range(self.consumers):
            self.work_queue.put(END_OF_PATHS)

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="producer", daemon=True)
        self._thread.start()

    def join(self) -> None:
        if self._thread is not None:
            self._thread.join()


class EndpointWorker:
    def __init__(self, config: WorkerConfig, client, work_queue: queue.Queue, results: queue.Queue, root_dir: str):
        self.config = config
        self.client = client
        self.work_queue = work_queue
        self.results = results
        self.root_dir = root_dir
        self.count = 0
        self._thread: Optional[threading.Thread] = None

    def copy(self, path: str) -> CopyResult:
        endpoint = self.config.endpoint
        try:
            key = object_key(path)
        except MalformedPathError as exc:
            logger.error("[worker %d] %s", self.config.index, exc)
            return CopyResult(path=path, error=exc, endpoint=endpoint)
        full_path = local_path(self.root_dir, path)
        try:
            info = put_object(self.client, self.config.bucket, key, full_path)
        except Exception as exc:
            logger.error("[worker %d] %s -> %s/%s at %s failed: %s", self.config.index, full_path, self.config.bucket, key, endpoint, exc)
            return CopyResult(path=path, error=exc, endpoint=endpoint)
        logger.debug("ETag: %s VersionID: %s", info.etag, info.version_id)
        return CopyResult(
            path=path,
            bytes_transferred=info.size,
            endpoint=endpoint,
            etag=info.etag,
            version_id=info.version_id,
        )

    def run(self) -> None:
        while True:
            path = self.work_queue.get()
            if path is END_OF_PATHS:
                break
            self.results.put(self.copy(path))
            self.count += 1

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name=f"worker-{self.config.index}", daemon=True)
        self._thread.start()

    def join(self) -> None:
        if self._thread is not None:
            self._thread.join()


class WorkerPool:
    """Создаёт всех воркеров сразу. Если хоть один клиент не создан — пул не запускается."""

    def __init__(self, configs: Sequence[WorkerConfig], work_queue: queue.Queue, results: queue.Queue, root_dir: str, client_factory=make_client):
        self.configs = tuple(configs)
        self.workers: List[EndpointWorker] = []
        for config in self.configs:
            try:
                client = client_factory(config)
            except Exception as exc:
                raise EndpointSetupError(config.index, config.endpoint, exc) from exc
            self.workers.append(EndpointWorker(config, client, work_queue, results, root_dir))

    def start(self) -> None:
        for worker in self.workers:
            worker.start()

    def join(self) -> None:
        for worker in self.workers:
            worker.join()


class BulkUploader:
    def __init__(self, settings, client_factory=make_client, out: Optional[TextIO] = None):
        self.settings = settings
        self.client_factory = client_factory
        self.out = out
        self.worker_configs = build_worker_configs(settings)
        self.work_queue: queue.Queue = queue.Queue(maxsize=settings.max_workers)
        self.results: queue.Queue = queue.Queue(maxsize=settings.max_workers)
        self.aggregator: Optional[ResultAggregator] = None
        self.reporter: Optional[StatsReporter] = None

    def build_pool(self) -> WorkerPool:
        return WorkerPool(self.worker_configs, self.work_queue, self.results, self.settings.root_dir, self.client_factory)

    def run(self, file_list: str) -> AggregateStats:
        pool = self.build_pool()
        producer = PathProducer.from_file(file_list, self.work_queue, len(self.worker_configs))
        return self.run_pipeline(pool, producer)

    def run_paths(self, paths: Iterable[str]) -> AggregateStats:
        pool = self.build_pool()
        return self.run_pipeline(pool, PathProducer(paths, self.work_queue, len(self.worker_configs)))

    def run_pipeline(self, pool: WorkerPool, producer: PathProducer) -> AggregateStats:
        self.aggregator = ResultAggregator(self.results, debug=self.settings.debug)
        self.aggregator.start()

        if self.settings.debug:
            spawned = " ".join(f"{c.index} {c.endpoint}" for c in self.worker_configs)
        else:
            spawned = " ".join(str(c.index) for c in self.worker_configs)
        logger.info("Spawning workers: %s", spawned)
        pool.start()
        producer.start()

        self.reporter = StatsReporter(self.aggregator, self.settings.timer_interval, out=self.out)
        self.reporter.start()

        # Порядок остановки важен: иначе финальная статистика может недосчитать
        producer.join()
        pool.join()
        self.aggregator.close()
        self.reporter.stop()
        self.aggregator.wait_drained()
        self.reporter.tick()

        if producer.error is not None:
            raise FileListError(f"Reading file list failed: {producer.error}") from producer.error
        return self.aggregator.snapshot()


def run_upload(settings, file_list: str, client_factory=make_client, out: Optional[TextIO] = None) -> AggregateStats:
    return BulkUploader(settings, client_factory=client_factory, out=out).run(file_list)
