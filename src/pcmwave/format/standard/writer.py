"""WAVE file writer.

This module provides the file-level entry points for saving float signals
as PCM WAVE files.
"""

import logging
from pathlib import Path

from pcmwave.format.pcm import write_samples
from pcmwave.format.riff import OpenError
from pcmwave.format.types import WaveFormat
from pcmwave.format.validation import validate_format
from pcmwave.format.wave import WaveWriter
from pcmwave.types import SampleInput

logger = logging.getLogger(__name__)


def save_wave(
    path: Path | str,
    samples: SampleInput,
    frame_rate: int,
    sample_width: int = 2,
    channels: int = 1,
    *,
    replicate: bool = False,
) -> int:
    """Save float samples to a PCM WAVE file.

    Samples are clipped to [-1, 1] and quantized to ``sample_width`` bytes.

    Args:
        path: Output file path.
        samples: Flat float samples, interleaved when ``channels > 1``.
        frame_rate: Frames per second.
        sample_width: Bytes per sample (1-4).
        channels: Channels per frame.
        replicate: Write each sample as one frame with the same value on
            every channel instead of treating ``samples`` as interleaved.

    Returns:
        Number of frames written. Without ``replicate`` this is
        ``len(samples) // channels``; leftover samples are dropped.

    Raises:
        ValidationError: If a format parameter is invalid. Nothing is
            written in that case.
        OpenError: If the file cannot be opened for writing.
    """
    fmt = WaveFormat(channels=channels, sample_width=sample_width, frame_rate=frame_rate)
    validate_format(fmt)

    with WaveWriter(Path(path)) as writer:
        writer.set_format(fmt)
        num_frames = write_samples(writer, samples, replicate=replicate)

    logger.debug("Saved %d frames to %s", num_frames, path)
    return num_frames


def write_wave_file(
    path: Path | str,
    samples: SampleInput,
    frame_rate: int,
    sample_width: int,
    channels: int,
    *,
    replicate: bool = False,
) -> bool:
    """Write float samples to a PCM WAVE file.

    See :func:`save_wave` for the meaning of the arguments.

    Returns:
        True on success, False if the file cannot be opened for writing.

    Raises:
        ValidationError: If a format parameter is invalid.
    """
    try:
        save_wave(
            path,
            samples,
            frame_rate,
            sample_width,
            channels,
            replicate=replicate,
        )
    except OpenError:
        return False
    return True
