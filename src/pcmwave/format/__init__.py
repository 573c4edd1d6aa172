"""PCM WAVE format module.

This module provides functionality for reading and writing uncompressed
linear PCM audio in RIFF/WAVE files.

Format Overview
---------------
    +----------------------------------------+
    | RIFF Header ("WAVE")                   |
    +----------------------------------------+
    | fmt  chunk (audio format)              |
    |   - format tag 1 (PCM)                 |
    |   - channels, frame rate               |
    |   - 8/16/24/32-bit samples             |
    +----------------------------------------+
    | ... other chunks (skipped) ...         |
    +----------------------------------------+
    | data chunk (interleaved samples)       |
    +----------------------------------------+

Reading averages all channels of a frame into one float; writing clips and
quantizes floats to the requested sample width.

Example Usage
-------------
>>> from pcmwave.format import read_wave_file, write_wave_file
>>> write_wave_file("tone.wav", [0.0, 0.5, -0.5, 1.0], 8000, 2, 1)
True
>>> samples, frame_rate = read_wave_file("tone.wav")
"""

from pcmwave.format.riff import Chunk, OpenError, RiffError
from pcmwave.format.standard import (
    WaveFile,
    load_wave,
    read_wave_file,
    read_wave_info,
    save_wave,
    write_wave_file,
)
from pcmwave.format.types import FormatTag, WaveFormat, WaveInfo
from pcmwave.format.validation import StateError, ValidationError
from pcmwave.format.wave import (
    FormatError,
    MissingChunkError,
    OrderError,
    UnsupportedFormatError,
    WaveReader,
    WaveWriter,
)

__all__ = [
    # Types
    "FormatTag",
    "WaveFormat",
    "WaveInfo",
    "WaveFile",
    # Sessions
    "Chunk",
    "WaveReader",
    "WaveWriter",
    # Entry points
    "load_wave",
    "read_wave_file",
    "read_wave_info",
    "save_wave",
    "write_wave_file",
    # Errors
    "RiffError",
    "OpenError",
    "FormatError",
    "UnsupportedFormatError",
    "OrderError",
    "MissingChunkError",
    "ValidationError",
    "StateError",
]
