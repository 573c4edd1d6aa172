"""pcmwave - PCM WAVE file encoding and decoding.

This package converts between uncompressed PCM WAVE files (8, 16, 24 or
32-bit integer samples) and normalized floating-point signals.

Example Usage
-------------
>>> from pcmwave import read_wave_file, write_wave_file
>>> import numpy as np
>>>
>>> t = np.arange(8000) / 8000
>>> write_wave_file("a440.wav", 0.5 * np.sin(2 * np.pi * 440 * t), 8000, 2, 1)
True
>>> samples, frame_rate = read_wave_file("a440.wav")
"""

# Re-export format module for convenience
from pcmwave.format import (
    FormatError,
    MissingChunkError,
    OpenError,
    OrderError,
    RiffError,
    StateError,
    UnsupportedFormatError,
    ValidationError,
    WaveFile,
    WaveFormat,
    WaveInfo,
    WaveReader,
    WaveWriter,
    load_wave,
    read_wave_file,
    read_wave_info,
    save_wave,
    write_wave_file,
)

__all__ = [
    # Types
    "WaveFormat",
    "WaveInfo",
    "WaveFile",
    # Sessions
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
