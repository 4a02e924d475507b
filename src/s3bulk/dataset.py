"""
Генератор тестового набора для s3bulk: много маленьких файлов и немного
больших, разложенных по схеме ab/cd/ef/<id>/<id>.data, плюс файл-список.
"""
import argparse
import uuid
from pathlib import Path
from typing import List

# Utilities to parse sizes like "100MB", "1GB"
UNITS = {"kb": 1024, "mb": 1024**2, "gb": 1024**3}


def parse_size(s: str) -> int:
    s = s.strip().lower()
    for u, mul in UNITS.items():
        if s.endswith(u):
            return int(float(s[:-len(u)]) * mul)
    return int(s)


def sharded_path(object_id: str) -> str:
    """f8f2f670-... -> f8/f2/f6/f8f2f670-.../f8f2f670-....data"""
    return f"{object_id[0:2]}/{object_id[2:4]}/{object_id[4:6]}/{object_id}/{object_id}.data"


def write_sparse(path: Path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as fh:
        if size > 0:
            fh.seek(size - 1)
            fh.write(b"\0")


def make_dataset(root: str, small_count: int, small_size: int, large_count: int, large_size: int, filelist: str) -> List[str]:
    """Создаёт файлы под root и пишет их относительные пути в filelist."""
    base = Path(root)
    base.mkdir(parents=True, exist_ok=True)
    paths = []
    for count, size in ((small_count, small_size), (large_count, large_size)):
        for _ in range(count):
            rel = sharded_path(str(uuid.uuid4()))
            write_sparse(base / rel, size)
            paths.append(rel)
    with open(filelist, "w", encoding="utf-8") as fh:
        for rel in paths:
            fh.write(rel + "\n")
    return paths


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="s3bulk-dataset",
        description="Создать тестовый набор файлов и файл-список для s3bulk",
    )
    parser.add_argument("--path", required=True, help="Каталог, в котором будет создан набор (потом передаётся как --rootDir)")
    parser.add_argument("--filelist", default="filelist.txt", help="Куда записать список путей (по умолчанию: filelist.txt)")
    parser.add_argument("--small-count", type=int, default=1000, help="Количество маленьких файлов (по умолчанию: 1000)")
    parser.add_argument("--small-size", default="4KB", help="Размер маленького файла (по умолчанию: 4KB)")
    parser.add_argument("--large-count", type=int, default=10, help="Количество больших файлов (по умолчанию: 10)")
    parser.add_argument("--large-size", default="100MB", help="Размер большого файла (по умолчанию: 100MB)")
    args = parser.parse_args(argv)

    paths = make_dataset(
        root=args.path,
        small_count=args.small_count,
        small_size=parse_size(args.small_size),
        large_count=args.large_count,
        large_size=parse_size(args.large_size),
        filelist=args.filelist,
    )
    print(f"Dataset prepared under {args.path}: {len(paths)} files, list in {args.filelist}")
