"""File-level WAVE reader and writer.

This subpackage provides the entry points for loading and saving PCM WAVE
files as normalized float signals.
"""

from pcmwave.format.standard.reader import WaveFile, load_wave, read_wave_file, read_wave_info
from pcmwave.format.standard.writer import save_wave, write_wave_file

__all__ = [
    "WaveFile",
    "load_wave",
    "read_wave_file",
    "read_wave_info",
    "save_wave",
    "write_wave_file",
]
