import re
from typing import List, Optional

MIME_TYPE_PATTERN = re.compile(
    r"^[a-zA-Z0-9][a-zA-Z0-9!#$&^_.+-]{0,126}/[a-zA-Z0-9][a-zA-Z0-9!#$&^_.+-]{0,126}$"
)


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty, or whitespace-only strings."""
    return value is None or not value.strip()


def validate_mime_type(file_type: str, allowed: Optional[List[str]] = None) -> bool:
    """Validate MIME type syntax and, when given, membership in an allow-list."""
    if not file_type:
        return False

    # Ignore parameters such as "; charset=utf-8"
    base_type = file_type.split(";", 1)[0].strip().lower()
    if not MIME_TYPE_PATTERN.match(base_type):
        return False

    if allowed:
        return base_type in [a.lower() for a in allowed]
    return True


def sanitize_file_name(file_name: str, max_length: int = 128) -> str:
    """Reduce a client-supplied file name to a safe object key segment."""
    # Drop any directory part a browser or client may send
    name = re.split(r"[\\/]", file_name)[-1].strip()
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"[^A-Za-z0-9._-]", "", name)
    name = name.lstrip(".")

    if len(name) > max_length:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) < 16:
            name = stem[: max_length - len(ext) - 1] + "." + ext
        else:
            name = name[:max_length]

    return name or "attachment"


def validate_url_format(url: str) -> bool:
    """Validate attachment reference format (http(s) URL or s3:// URI)."""
    if not url:
        return False

    url_pattern = r"^(https?|s3)://[^\s/$.?#][^\s]*$"
    return bool(re.match(url_pattern, url))
