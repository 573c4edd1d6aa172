"""Validation of WAVE writer parameters.

The writer accepts its format one field at a time; each setter validates
its own field with the functions below, and the file-level writer checks all
of them before it creates any output.
"""

from numbers import Integral

from pcmwave.format.types import WaveFormat

MAX_CHANNELS = 0xFFFF
MAX_FRAME_RATE = 0xFFFFFFFF
SUPPORTED_SAMPLE_WIDTHS = (1, 2, 3, 4)


class ValidationError(Exception):
    """Invalid WAVE format parameter."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class StateError(Exception):
    """Writer format changed after the header was written."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


def _require_integer(value: object, field: str) -> None:
    # bool is an Integral but never a meaningful format value
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(
            f"{field} must be an integer, got {value!r}",
            field=field,
        )


def validate_channels(channels: int) -> None:
    _require_integer(channels, "channels")
    if not 1 <= channels <= MAX_CHANNELS:
        raise ValidationError(
            f"channels must be between 1 and {MAX_CHANNELS}, got {channels}",
            field="channels",
        )


def validate_sample_width(sample_width: int) -> None:
    _require_integer(sample_width, "sample_width")
    if sample_width not in SUPPORTED_SAMPLE_WIDTHS:
        raise ValidationError(
            f"sample_width must be one of {SUPPORTED_SAMPLE_WIDTHS}, got {sample_width}",
            field="sample_width",
        )


def validate_frame_rate(frame_rate: int) -> None:
    _require_integer(frame_rate, "frame_rate")
    if not 0 < frame_rate <= MAX_FRAME_RATE:
        raise ValidationError(
            f"frame_rate must be positive and fit in 32 bits, got {frame_rate}",
            field="frame_rate",
        )


def validate_format(fmt: WaveFormat) -> None:
    """Validate every field of a complete format.

    Raises:
        ValidationError: For the first invalid field, in the order
            channels, sample_width, frame_rate.
    """
    validate_channels(fmt.channels)
    validate_sample_width(fmt.sample_width)
    validate_frame_rate(fmt.frame_rate)
