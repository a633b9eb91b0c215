# utils.py

import logging
import zlib

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def is_power_of_two(n):
    return isinstance(n, int) and not isinstance(n, bool) and n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n):
    """Smallest power of two >= n (n must be positive)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def get_color(allocated, key=None):
    """Return a color for allocated/free blocks."""
    if not allocated:
        return "#d3d3d3"  # light grey
    # stable pastel color per key so a block keeps its color across reruns
    hue = zlib.crc32(str(key).encode()) % 360 if key is not None else 200
    return f"hsl({hue}, 70%, 75%)"


def setup_logging(level=logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)
