"""Median-cut color quantization for movie artwork.

Pixels are reduced to unique colors with pixel counts, then buckets are split
along their widest channel at the value boundary nearest the weighted median.
Equal channel values never straddle a split, so every bucket ends up with a
different representative color and a palette never repeats a swatch. All
arithmetic after decoding is integer, so identical input always gives an
identical palette.
"""

import io
import logging
import math
from dataclasses import dataclass

import numpy as np
from PIL import Image

import config

logger = logging.getLogger("mood_movies.quantizer")


class ArtworkDecodeError(Exception):
    """Artwork bytes could not be decoded into pixels."""


@dataclass(frozen=True)
class ColorSwatch:
    red: int
    green: int
    blue: int

    @property
    def rgb(self):
        return (self.red, self.green, self.blue)

    @property
    def hex(self):
        return f"#{self.red:02X}{self.green:02X}{self.blue:02X}"


def decode_artwork(data, max_dim=None):
    """Decode image bytes to an (h, w, 3|4) uint8 array.

    :param data: encoded image (JPEG, PNG, WebP, ...)
    :param max_dim: bound on width and height; defaults to config.MAX_ARTWORK_DIM
    :return: RGB array, or RGBA when the image carries transparency
    :raise ArtworkDecodeError: if the bytes are empty or not a readable image
    """
    if not data:
        raise ArtworkDecodeError("No artwork data")
    max_dim = config.MAX_ARTWORK_DIM if max_dim is None else max_dim
    try:
        with Image.open(io.BytesIO(data)) as image:
            has_alpha = "A" in image.getbands() or "transparency" in image.info
            converted = image.convert("RGBA" if has_alpha else "RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ArtworkDecodeError(f"Could not decode artwork: {exc}") from exc
    converted.thumbnail((max_dim, max_dim))
    return np.asarray(converted, dtype=np.uint8)


def extract_palette(pixels, k=None):
    """Return up to ``k`` swatches ordered by how many pixels each represents.

    :param pixels: (h, w, 3|4) or (n, 3|4) array, or a PIL image
    :param k: maximum palette size, defaults to config.PALETTE_SIZE
    :return: tuple of ColorSwatch, empty when there are no opaque pixels
    """
    k = config.PALETTE_SIZE if k is None else k
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")

    rows = _usable_rows(pixels)
    if len(rows) == 0:
        return ()

    colors, counts = np.unique(rows, axis=0, return_counts=True)
    buckets = _median_cut(colors, counts.astype(np.int64), k)

    weighted = [(int(bucket_counts.sum()), _mean_color(bucket_colors, bucket_counts))
                for bucket_colors, bucket_counts in buckets]
    weighted.sort(key=lambda item: (-item[0], item[1].rgb))
    return tuple(swatch for _, swatch in weighted)


def palette_from_bytes(data, k=None):
    try:
        pixels = decode_artwork(data)
    except ArtworkDecodeError as exc:
        logger.warning("Palette unavailable: %s", exc)
        return ()
    return extract_palette(pixels, k)


def primary_color(palette):
    return palette[0] if palette else None


def accent_colors(palette):
    return tuple(palette[1:])


def _usable_rows(pixels):
    if isinstance(pixels, Image.Image):
        mode = "RGBA" if "A" in pixels.getbands() else "RGB"
        pixels = np.asarray(pixels.convert(mode))
    array = np.asarray(pixels)

    if array.ndim == 3 and array.shape[2] in (3, 4):
        height, width = array.shape[:2]
        step = _stride(height * width)
        array = array[::step, ::step].reshape(-1, array.shape[2])
    elif array.ndim == 2 and array.shape[1] in (3, 4):
        array = array[:: math.ceil(len(array) / config.MAX_WORKING_PIXELS) or 1]
    else:
        raise ValueError(f"Expected RGB or RGBA pixels, got shape {array.shape}")

    rows = np.clip(array, 0, 255).astype(np.int64)
    if rows.shape[1] == 4:
        rows = rows[rows[:, 3] > 0][:, :3]
    return rows


def _stride(total):
    if total <= config.MAX_WORKING_PIXELS:
        return 1
    return math.ceil(math.sqrt(total / config.MAX_WORKING_PIXELS))


def _median_cut(colors, counts, k):
    buckets = [(colors, counts)]
    while len(buckets) < k:
        index = _largest_splittable(buckets)
        if index is None:
            break
        buckets[index:index + 1] = _split(*buckets[index])
    return buckets


def _largest_splittable(buckets):
    best_index, best_total = None, -1
    for index, (colors, counts) in enumerate(buckets):
        if len(colors) < 2:
            continue
        total = int(counts.sum())
        if total > best_total:
            best_index, best_total = index, total
    return best_index


def _split(colors, counts):
    ranges = colors.max(axis=0) - colors.min(axis=0)
    axis = int(np.argmax(ranges))
    order = np.argsort(colors[:, axis], kind="stable")
    colors, counts = colors[order], counts[order]

    values = colors[:, axis]
    cumulative = np.cumsum(counts)
    boundaries = np.flatnonzero(values[1:] != values[:-1]) + 1
    # 2 * weight below the cut vs total keeps the comparison in integers
    distance = np.abs(2 * cumulative[boundaries - 1] - cumulative[-1])
    cut = int(boundaries[int(np.argmin(distance))])
    return [(colors[:cut], counts[:cut]), (colors[cut:], counts[cut:])]


def _mean_color(colors, counts):
    total = int(counts.sum())
    sums = (colors * counts[:, None]).sum(axis=0)
    channels = [min(max((2 * int(s) + total) // (2 * total), 0), 255) for s in sums]
    return ColorSwatch(*channels)
