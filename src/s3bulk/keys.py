from .errors import MalformedPathError

KEY_SEGMENTS = 4


def object_key(path: str) -> str:
    """Возвращает ключ объекта: первые четыре сегмента пути через '/'."""
    parts = path.split("/")
    if len(parts) < KEY_SEGMENTS:
        raise MalformedPathError(path, KEY_SEGMENTS)
    return "/".join(parts[:KEY_SEGMENTS])


def local_path(root_dir: str, path: str) -> str:
    # rootDir — просто префикс, разделитель не добавляется
    return root_dir + path
