"""WAVE file reader.

This module provides the file-level entry points for loading PCM WAVE files
as normalized float signals.
"""

from dataclasses import dataclass
from pathlib import Path

from pcmwave.format.pcm import read_samples
from pcmwave.format.riff import OpenError
from pcmwave.format.types import WaveInfo
from pcmwave.format.wave import WaveReader
from pcmwave.types import Signal


@dataclass
class WaveFile:
    """A decoded WAVE file."""

    samples: Signal
    """One float per frame, channels averaged, in [-1, 1)."""

    info: WaveInfo
    """Header information from the file."""

    @property
    def frame_rate(self) -> int:
        return self.info.frame_rate

    @property
    def num_frames(self) -> int:
        return self.info.num_frames

    @property
    def channels(self) -> int:
        """Channel count of the source file (the samples are already mixed down)."""
        return self.info.channels

    @property
    def sample_width(self) -> int:
        return self.info.sample_width

    @property
    def duration(self) -> float:
        return self.info.duration


def load_wave(path: Path | str) -> WaveFile:
    """Load a PCM WAVE file.

    Args:
        path: Path to the WAV file.

    Returns:
        WaveFile with the downmixed samples and header information.

    Raises:
        OpenError: If the file cannot be opened.
        RiffError: If the file is not a valid PCM WAVE file (see the
            subclasses in ``pcmwave.format.wave``).
    """
    with WaveReader(Path(path)) as reader:
        samples = read_samples(reader)
        info = reader.info
    return WaveFile(samples=samples, info=info)


def read_wave_file(path: Path | str) -> tuple[Signal, int] | None:
    """Read a PCM WAVE file as ``(samples, frame_rate)``.

    Returns:
        The downmixed samples and the frame rate, or None if the file cannot
        be opened. Format errors in a file that opened are raised.

    Example:
        >>> result = read_wave_file("speech.wav")
        >>> if result is not None:
        ...     samples, frame_rate = result
    """
    try:
        wave_file = load_wave(path)
    except OpenError:
        return None
    return wave_file.samples, wave_file.frame_rate


def read_wave_info(path: Path | str) -> WaveInfo:
    """Parse the header of a WAVE file without decoding its samples.

    Raises:
        OpenError: If the file cannot be opened.
        RiffError: If the file is not a valid PCM WAVE file.
    """
    with WaveReader(Path(path)) as reader:
        return reader.info
