import argparse
import logging

from .config import load_settings
from .errors import S3BulkError
from .executor import run_upload
from .logs import setup_logging

logger = logging.getLogger(__name__)

MISSING_FILELIST = "Missing parameter, provide file name!"


def build_parser() -> argparse.ArgumentParser:
    epilog = """
Примеры:

  # Загрузить файлы из списка, настройки в ~/.bulkS3upload.yaml
  s3bulk filelist.txt

  # Два endpoint'а, 16 воркеров, статистика раз в 5 секунд
  s3bulk --endpoints 10.0.0.1:9000,10.0.0.2:9000 --maxWorkers 16 \\
    --bucket data --accessKeyID minioadmin --secretAccessKey minioadmin \\
    --rootDir /mnt/data/ --timerInterval 5 filelist.txt
"""
    parser = argparse.ArgumentParser(
        prog="s3bulk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Массовая загрузка списка файлов в несколько S3-совместимых endpoint'ов",
        epilog=epilog,
    )
    parser.add_argument("filelist", nargs="?", help="Файл со списком относительных путей (по одному на строку)")
    parser.add_argument("--config", default=None, help="YAML-файл с настройками (по умолчанию ищется .bulkS3upload.yaml в $HOME и в текущем каталоге)")
    parser.add_argument("--rootDir", dest="root_dir", default=None, help="Префикс локальной файловой системы для путей из списка (по умолчанию: ./)")
    parser.add_argument("--maxWorkers", dest="max_workers", type=int, default=None, help="Количество воркеров загрузки (по умолчанию: 1)")
    parser.add_argument("--endpoints", action="append", default=None, help="Список ip:port S3 endpoint'ов через запятую; флаг можно повторять")
    parser.add_argument("--accessKeyID", dest="access_key_id", default=None, help="AccessKeyID (имя пользователя) для S3 endpoint'ов")
    parser.add_argument("--secretAccessKey", dest="secret_access_key", default=None, help="SecretAccessKey (пароль) для S3 endpoint'ов")
    parser.add_argument("--bucket", default=None, help="Бакет, в который пишутся все файлы")
    parser.add_argument("--timerInterval", dest="timer_interval", type=float, default=None, help="Интервал вывода статистики в секундах; ноль или отрицательное значение отключает вывод (по умолчанию: 3.0)")
    parser.add_argument("--region", default=None, help="Регион для подписи запросов (по умолчанию: us-east-1)")
    parser.add_argument("--debug", action="store_true", default=None, help="Подробный вывод для отладки")
    parser.add_argument("--ssl", action="store_true", default=None, help="Использовать https для соединения с endpoint'ами")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(bool(args.debug))

    try:
        settings = load_settings(args)
    except S3BulkError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc
    setup_logging(settings.debug)

    if not args.filelist:
        print(MISSING_FILELIST)
        return

    try:
        run_upload(settings, args.filelist)
    except S3BulkError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc

