class S3BulkError(Exception):
    """Базовое исключение s3bulk."""


class ConfigError(S3BulkError):
    pass


class FileListError(S3BulkError):
    pass


class EndpointSetupError(S3BulkError):
    """Воркер не смог создать клиент для своего endpoint'а."""

    def __init__(self, worker: int, endpoint: str, cause: Exception):
        self.worker = worker
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"worker {worker}: cannot create client for {endpoint}: {cause}")


class MalformedPathError(S3BulkError):
    """В пути меньше сегментов, чем нужно для ключа объекта."""

    def __init__(self, path: str, segments: int):
        self.path = path
        self.segments = segments
        super().__init__(f"malformed path {path!r}: need at least {segments} segments")
