"""General helper utilities."""
from werkzeug.utils import secure_filename


def safe_upload_name(original_name: str | None) -> str:
    """Sanitized filename, or an empty string when nothing usable is left."""
    return secure_filename(original_name or "")


def exceeds_size_limit(size_bytes: int, max_mb: int) -> bool:
    return size_bytes > max_mb * 1024 * 1024
