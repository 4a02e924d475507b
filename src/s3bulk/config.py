from __future__ import annotations

import logging
import os
from argparse import Namespace
from pathlib import Path
from typing import List, Mapping, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = ".bulkS3upload.yaml"
CONFIG_DIRS = ("~", ".")

DEFAULTS = {
    "root_dir": "./",
    "max_workers": 1,
    "timer_interval": 3.0,
    "debug": False,
    "ssl": False,
    "region": "us-east-1",
}

# Имя опции -> переменная окружения (как AutomaticEnv: имя ключа в верхнем регистре)
ENV_NAMES = {
    "root_dir": "ROOTDIR",
    "max_workers": "MAXWORKERS",
    "endpoints": "ENDPOINTS",
    "access_key_id": "ACCESSKEYID",
    "secret_access_key": "SECRETACCESSKEY",
    "bucket": "BUCKET",
    "timer_interval": "TIMERINTERVAL",
    "debug": "DEBUG",
    "ssl": "SSL",
    "region": "REGION",
}


def split_endpoints(value) -> Optional[List[str]]:
    """Принимает строку 'a:1,b:2' или список (в т.ч. с запятыми внутри) и возвращает плоский список."""
    if value is None:
        return None
    items = [value] if isinstance(value, str) else list(value)
    result = []
    for item in items:
        for part in str(item).split(","):
            part = part.strip()
            if part:
                result.append(part)
    return result


class UploadConfigModel(BaseModel):
    """Сырые значения из YAML или окружения. Все поля необязательные."""

    model_config = ConfigDict(extra="ignore")

    root_dir: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("rootDir", "root_dir", "ROOTDIR"),
    )
    max_workers: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("maxWorkers", "max_workers", "MAXWORKERS"),
    )
    endpoints: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("endpoints", "ENDPOINTS"),
    )
    access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("accessKeyID", "access_key_id", "ACCESSKEYID"),
    )
    secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("secretAccessKey", "secret_access_key", "SECRETACCESSKEY"),
    )
    bucket: Optional[str] = Field(default=None, validation_alias=AliasChoices("bucket", "BUCKET"))
    timer_interval: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("timerInterval", "timer_interval", "TIMERINTERVAL"),
    )
    debug: Optional[bool] = Field(default=None, validation_alias=AliasChoices("debug", "DEBUG"))
    ssl: Optional[bool] = Field(default=None, validation_alias=AliasChoices("ssl", "SSL"))
    region: Optional[str] = Field(default=None, validation_alias=AliasChoices("region", "REGION"))

    @field_validator("endpoints", mode="before")
    @classmethod
    def _split_endpoints(cls, value):
        return split_endpoints(value)


class UploadSettings(BaseModel):
    """Итоговые проверенные настройки запуска."""

    model_config = ConfigDict(frozen=True)

    root_dir: str
    max_workers: int = Field(ge=1)
    endpoints: List[str] = Field(min_length=1)
    access_key_id: str = Field(min_length=1)
    secret_access_key: str = Field(min_length=1)
    bucket: str = Field(min_length=1)
    timer_interval: float
    debug: bool = False
    ssl: bool = False
    region: str = "us-east-1"


def find_config_file(explicit: Optional[str] = None) -> Optional[Path]:
    if explicit:
        config_path = Path(explicit).expanduser()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path
    for directory in CONFIG_DIRS:
        candidate = Path(directory).expanduser() / CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> UploadConfigModel:
    try:
        with path.open("r", encoding="utf-8") as fh:
            parsed = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    try:
        return UploadConfigModel(**parsed)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> UploadConfigModel:
    environ = os.environ if environ is None else environ
    values = {env: environ[env] for env in ENV_NAMES.values() if environ.get(env)}
    try:
        return UploadConfigModel(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in environment: {exc}") from exc


def resolve_settings(
    cli_args: Namespace,
    env_config: Optional[UploadConfigModel] = None,
    file_config: Optional[UploadConfigModel] = None,
) -> UploadSettings:
    """Собирает настройки: CLI > окружение > файл конфигурации > значения по умолчанию."""

    def pick(name: str):
        cli_value = getattr(cli_args, name, None)
        if cli_value is not None:
            return cli_value
        for source in (env_config, file_config):
            if source is not None:
                value = getattr(source, name)
                if value is not None:
                    return value
        return DEFAULTS.get(name)

    values = {name: pick(name) for name in UploadSettings.model_fields}
    values["endpoints"] = split_endpoints(values["endpoints"]) or []

    problems = []
    if values["max_workers"] is None or values["max_workers"] < 1:
        problems.append(f"maxWorkers value bad: {values['max_workers']}")
    if not values["endpoints"]:
        problems.append("No endpoints set")
    for name, label in (
        ("access_key_id", "accessKeyID"),
        ("secret_access_key", "secretAccessKey"),
        ("bucket", "bucket name"),
    ):
        if not values[name]:
            problems.append(f"{label} not set")
    if problems:
        raise ConfigError("; ".join(problems))

    try:
        return UploadSettings(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_settings(cli_args: Namespace, environ: Optional[Mapping[str, str]] = None) -> UploadSettings:
    config_path = find_config_file(getattr(cli_args, "config", None))
    file_config = None
    if config_path is None:
        logger.warning("Config file %s not found in %s, using flags and environment only", CONFIG_FILE, ", ".join(CONFIG_DIRS))
    else:
        logger.debug("Using config file %s", config_path)
        file_config = load_config_file(config_path)
    return resolve_settings(cli_args, load_env_config(environ), file_config)
