"""
Клиент S3 для одного endpoint'а и операция PUT объекта.

Каждый воркер владеет своим клиентом на всё время работы; клиенты между
воркерами не переиспользуются.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

import boto3
from botocore.config import Config


@dataclass(frozen=True)
class UploadInfo:
    etag: str | None
    version_id: str | None
    size: int


def endpoint_url(endpoint: str, ssl: bool) -> str:
    """host:port -> URL. Если схема уже указана, endpoint возвращается как есть."""
    if "://" in endpoint:
        return endpoint
    scheme = "https" if ssl else "http"
    return f"{scheme}://{endpoint}"


def make_client(worker):
    """Создаёт boto3-клиент для WorkerConfig. Ошибки конструирования пробрасываются наверх."""
    # boto3.Session не потокобезопасен, поэтому у каждого воркера своя сессия
    session = boto3.session.Session(
        aws_access_key_id=worker.access_key_id,
        aws_secret_access_key=worker.secret_access_key,
        region_name=worker.region,
    )
    config = Config(
        signature_version="s3v4",
        max_pool_connections=1,
        s3={"addressing_style": "path"},
        # повторы отключены: упавший файл просто считается ошибкой
        retries={"mode": "standard", "total_max_attempts": 1},
    )
    return session.client(
        "s3",
        endpoint_url=endpoint_url(worker.endpoint, worker.ssl),
        use_ssl=worker.ssl,
        config=config,
    )


def put_object(client, bucket: str, key: str, local: str) -> UploadInfo:
    """Загружает локальный файл в bucket/key одним PUT'ом."""
    with open(local, "rb") as fh:
        size = os.fstat(fh.fileno()).st_size
        resp = client.put_object(Bucket=bucket, Key=key, Body=fh)
    return UploadInfo(
        etag=resp.get("ETag"),
        version_id=resp.get("VersionId"),
        size=size,
    )
