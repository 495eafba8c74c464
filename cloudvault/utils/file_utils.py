import mimetypes
import re


def is_filename_valid(filename: str) -> bool:
    """
    Checks if a filename contains illegal characters for Windows, Linux, and macOS.
    Names that would escape a storage key segment are rejected as well.
    """
    if not filename or filename in (".", ".."):
        return False
    if re.search(r'[<>:"/\\|?*\x00]', filename):
        return False
    return True


def format_bytes(size_bytes: int) -> str:
    """Format bytes as human-readable string."""
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def guess_mime_type(filename: str, declared: str = None) -> str:
    if declared and declared != "application/octet-stream":
        return declared
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"
