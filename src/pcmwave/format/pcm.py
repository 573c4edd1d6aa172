"""Conversion between raw PCM frames and normalized float samples.

Decoding downmixes: every frame becomes one float, the average of its
channels. Encoding takes interleaved floats (or, with ``replicate=True``,
one float per frame copied to every channel), clips them to [-1, 1] and
quantizes them to the requested sample width.

Sample width conventions (little-endian on disk):
- 1 byte: unsigned, 0x80 is silence
- 2 bytes: signed 16-bit
- 3 bytes: signed 24-bit, sign bit is bit 23
- 4 bytes: signed 32-bit
"""

import logging

import numpy as np
from numpy.typing import NDArray

from pcmwave.format.validation import SUPPORTED_SAMPLE_WIDTHS
from pcmwave.format.wave import WaveReader, WaveWriter
from pcmwave.types import SampleInput, Signal

logger = logging.getLogger(__name__)

UNSIGNED_BIAS = 0x80


def full_scale(sample_width: int) -> int:
    """Integer magnitude that maps to 1.0 for a sample width (2^(8w-1))."""
    return 1 << (8 * sample_width - 1)


def _check_sample_width(sample_width: int) -> None:
    if sample_width not in SUPPORTED_SAMPLE_WIDTHS:
        raise ValueError(f"Unsupported sample width: {sample_width}")


def unpack_integers(data: bytes, sample_width: int) -> NDArray[np.int64]:
    """Unpack little-endian PCM bytes into centered signed integers.

    Width 1 has its 0x80 bias removed; width 3 is sign-extended from bit 23.

    Args:
        data: Raw sample bytes. Length must be a multiple of ``sample_width``.
        sample_width: Bytes per sample (1-4).

    Returns:
        One int64 per sample.
    """
    _check_sample_width(sample_width)

    if sample_width == 1:
        return np.frombuffer(data, dtype=np.uint8).astype(np.int64) - UNSIGNED_BIAS
    elif sample_width == 2:
        return np.frombuffer(data, dtype="<i2").astype(np.int64)
    elif sample_width == 3:
        raw = np.frombuffer(data, dtype=np.uint8).reshape(-1, 3).astype(np.int64)
        values = raw[:, 0] | (raw[:, 1] << 8) | (raw[:, 2] << 16)
        return np.where(values & 0x800000, values - 0x1000000, values)
    else:
        return np.frombuffer(data, dtype="<i4").astype(np.int64)


def pack_integers(values: NDArray[np.int64], sample_width: int) -> bytes:
    """Pack centered signed integers into little-endian PCM bytes.

    Only the low ``sample_width`` bytes of each value are kept; width 1 gets
    the 0x80 bias added back.
    """
    _check_sample_width(sample_width)

    if sample_width == 1:
        return (values + UNSIGNED_BIAS).astype(np.uint8).tobytes()
    elif sample_width == 2:
        return values.astype("<i2").tobytes()
    elif sample_width == 3:
        as_bytes = values.astype("<i4").view(np.uint8).reshape(-1, 4)
        return as_bytes[:, :3].tobytes()
    else:
        return values.astype("<i4").tobytes()


def decode_frames(data: bytes, channels: int, sample_width: int) -> Signal:
    """Decode raw interleaved frames into one normalized float per frame.

    Channels are averaged: each sample is scaled by ``1 / channels`` and the
    scaled samples of a frame are summed. Bytes after the last whole frame
    are ignored.

    Args:
        data: Raw ``data`` chunk bytes.
        channels: Channels per frame.
        sample_width: Bytes per sample (1-4).

    Returns:
        Float64 array with one value per frame, in [-1, 1).
    """
    frame_size = channels * sample_width
    num_frames = len(data) // frame_size

    values = unpack_integers(data[: num_frames * frame_size], sample_width)
    normalized = values.astype(np.float64) / full_scale(sample_width)

    scale = 1.0 / channels
    return (normalized.reshape(num_frames, channels) * scale).sum(axis=1)


def quantize(samples: SampleInput, sample_width: int) -> NDArray[np.int64]:
    """Clip float samples to [-1, 1] and round them to signed integers.

    Rounds with ``floor((x * 2^(8w) + 1) / 2)`` (half-up), then clamps to
    the signed range of the width so +1.0 becomes the largest code instead
    of wrapping. NaN is treated as silence.
    """
    _check_sample_width(sample_width)

    x = np.asarray(samples, dtype=np.float64).ravel()
    x = np.nan_to_num(x, nan=0.0, posinf=1.0, neginf=-1.0)
    clipped = np.clip(x, -1.0, 1.0)

    scale = float(1 << (8 * sample_width))
    quantized = np.floor((clipped * scale + 1.0) / 2.0).astype(np.int64)

    limit = full_scale(sample_width)
    return np.clip(quantized, -limit, limit - 1)


def encode_samples(samples: SampleInput, sample_width: int) -> bytes:
    """Quantize float samples to raw PCM bytes of the given width."""
    return pack_integers(quantize(samples, sample_width), sample_width)


def interleave_samples(
    samples: SampleInput,
    channels: int,
    *,
    replicate: bool = False,
) -> Signal:
    """Lay out float samples as whole interleaved frames.

    Args:
        samples: Flat float samples.
        channels: Channels per frame.
        replicate: If True, each sample becomes one frame with the same
            value on every channel. Otherwise ``samples`` is already
            interleaved and only ``len(samples) // channels`` whole frames
            are kept; trailing samples are dropped.

    Returns:
        Flat float64 array whose length is a multiple of ``channels``.
    """
    if channels < 1:
        raise ValueError(f"channels must be >= 1, got {channels}")

    x = np.asarray(samples, dtype=np.float64).ravel()
    if replicate:
        return np.repeat(x, channels)

    num_frames = len(x) // channels
    dropped = len(x) - num_frames * channels
    if dropped:
        logger.debug(
            "Dropping %d trailing samples that do not fill a %d-channel frame",
            dropped,
            channels,
        )
    return x[: num_frames * channels]


def read_samples(reader: WaveReader) -> Signal:
    """Read and downmix every frame of an open reader."""
    data = reader.read_frames(reader.num_frames)
    return decode_frames(data, reader.channels, reader.sample_width)


def write_samples(
    writer: WaveWriter,
    samples: SampleInput,
    *,
    replicate: bool = False,
) -> int:
    """Encode float samples and append them to an open writer.

    The writer's format must be complete; the header is written first if it
    has not been already.

    Returns:
        Number of frames written.

    Raises:
        ValidationError: If the writer's format is incomplete.
    """
    writer.ensure_header_written()

    interleaved = interleave_samples(samples, writer.channels, replicate=replicate)
    num_frames = len(interleaved) // writer.channels
    writer.write_frames(encode_samples(interleaved, writer.sample_width), num_frames)
    return num_frames
