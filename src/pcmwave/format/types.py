"""Python types for WAVE format metadata.

These types describe the contents of the ``fmt `` chunk and the header-level
view of a parsed file, with conversion to the on-disk ``fmt `` payload.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum

COMPTYPE_NONE = "NONE"
COMPNAME_NONE = "not compressed"


class FormatTag(IntEnum):
    """``wFormatTag`` values found in the wild.

    Only PCM is supported; the others are named so that errors can say
    what was actually found.
    """

    PCM = 0x0001
    """Uncompressed linear PCM."""

    IEEE_FLOAT = 0x0003
    """32/64-bit IEEE floating point."""

    ALAW = 0x0006
    """ITU G.711 a-law."""

    MULAW = 0x0007
    """ITU G.711 mu-law."""

    EXTENSIBLE = 0xFFFE
    """WAVE_FORMAT_EXTENSIBLE (format determined by a sub-format GUID)."""

    @classmethod
    def describe(cls, value: int) -> str:
        """Human-readable name for a raw tag value."""
        try:
            return cls(value).name
        except ValueError:
            return f"0x{value:04X}"


@dataclass
class WaveFormat:
    """Layout of the samples in a WAVE ``data`` chunk."""

    channels: int
    """Number of interleaved channels per frame."""

    sample_width: int
    """Bytes per sample (1-4)."""

    frame_rate: int
    """Frames per second."""

    format_tag: int = FormatTag.PCM
    """The ``fmt `` chunk format tag."""

    @property
    def frame_size(self) -> int:
        """Bytes per frame (all channels)."""
        return self.channels * self.sample_width

    @property
    def block_align(self) -> int:
        return self.frame_size

    @property
    def byte_rate(self) -> int:
        """Average bytes per second."""
        return self.frame_rate * self.frame_size

    @property
    def bits_per_sample(self) -> int:
        return self.sample_width * 8

    def to_fmt_payload(self) -> bytes:
        """Pack the 16-byte PCM ``fmt `` chunk payload."""
        return struct.pack(
            "<HHIIHH",
            self.format_tag,
            self.channels,
            self.frame_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
        )


@dataclass
class WaveInfo:
    """Header information of a parsed WAVE file."""

    format: WaveFormat
    """Sample layout from the ``fmt `` chunk."""

    num_frames: int
    """Whole frames in the ``data`` chunk."""

    comptype: str = COMPTYPE_NONE
    compname: str = COMPNAME_NONE

    @property
    def channels(self) -> int:
        return self.format.channels

    @property
    def sample_width(self) -> int:
        return self.format.sample_width

    @property
    def frame_rate(self) -> int:
        return self.format.frame_rate

    @property
    def duration(self) -> float:
        """Length of the audio in seconds."""
        return self.num_frames / self.format.frame_rate
