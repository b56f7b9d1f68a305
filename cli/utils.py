"""Utility functions for CLI output."""

from cli.constants import GREEN, RESET


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_document_table(documents: list[dict]) -> str:
    """
    Render a listing as aligned rows: type marker, title, permission, size, id.
    """
    if not documents:
        return "No documents found."

    title_width = max(len(doc['title']) for doc in documents)
    lines = []
    for doc in documents:
        marker = "[dir]" if doc['type'] == 'folder' else "     "
        size = "" if doc['type'] == 'folder' else format_file_size(doc.get('content_size', 0))
        lines.append(
            f"{marker} {doc['title']:<{title_width}}  {doc.get('permission') or '-':<5}  "
            f"{size:>10}  {doc['node_id']}"
        )
    return "\n".join(lines)


def format_usage_bar(used: int, limit: int, width: int = 30) -> str:
    ratio = used / limit if limit else 1.0
    filled = min(int(ratio * width), width)
    bar = "#" * filled + "-" * (width - filled)
    return f"[{GREEN}{bar}{RESET}] {format_file_size(used)} / {format_file_size(limit)} ({ratio * 100:.1f}%)"
