SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(size):
    """Human readable size, e.g. ``1536 -> '1.5 KB'``."""
    if not size or size < 0:
        return "0 B"

    value = float(size)
    i = 0
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1

    if value >= 10 or i == 0:
        return f"{value:.0f} {SIZE_UNITS[i]}"
    return f"{value:.1f} {SIZE_UNITS[i]}"
