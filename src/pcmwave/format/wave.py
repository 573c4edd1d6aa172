"""WAVE reader and writer sessions.

``WaveReader`` parses the ``fmt `` and ``data`` chunks of a RIFF/WAVE file
and hands out raw interleaved frames. ``WaveWriter`` collects the format one
field at a time, writes the ``fmt `` chunk on the first frame write (or on
close) and appends raw frames to the ``data`` chunk.

Both sessions own their root chunk and refer to the ``data`` chunk by its
index in the root chunk's ``subchunks`` list.
"""

import logging
import struct
from typing import Any

from pcmwave.format.riff import (
    DATA_ID,
    FMT_ID,
    RIFF_ID,
    WAVE_FORMAT_PCM,
    WAVE_ID,
    Chunk,
    OpenError,
    RiffError,
)
from pcmwave.format.types import (
    COMPNAME_NONE,
    COMPTYPE_NONE,
    FormatTag,
    WaveFormat,
    WaveInfo,
)
from pcmwave.format.validation import (
    SUPPORTED_SAMPLE_WIDTHS,
    StateError,
    ValidationError,
    validate_channels,
    validate_frame_rate,
    validate_sample_width,
)
from pcmwave.types import WaveSource

logger = logging.getLogger(__name__)

# tag, channels, frame rate, avg bytes/sec, block align
_FMT_HEADER = struct.Struct("<HHIIH")


class FormatError(RiffError):
    """File is not a RIFF/WAVE container."""


class UnsupportedFormatError(RiffError):
    """The ``fmt `` chunk describes something other than linear PCM."""

    def __init__(
        self, message: str, chunk_id: bytes | None = FMT_ID, format_tag: int | None = None
    ) -> None:
        self.format_tag = format_tag
        super().__init__(message, chunk_id=chunk_id)


class OrderError(RiffError):
    """The ``data`` chunk appears before the ``fmt `` chunk."""


class MissingChunkError(RiffError):
    """The ``fmt `` or ``data`` chunk is absent."""


class WaveReader:
    """Read session over a RIFF/WAVE file.

    All chunk headers are parsed up front; the ``data`` payload is read
    lazily through :meth:`read_frames`.

    Example:
        >>> with WaveReader("tone.wav") as reader:
        ...     raw = reader.read_frames(reader.num_frames)
    """

    def __init__(self, source: WaveSource) -> None:
        """Open and parse ``source``.

        Args:
            source: A path, or a readable and seekable binary file object.

        Raises:
            OpenError: If ``source`` is a path that cannot be opened.
            FormatError: If the file is not a RIFF/WAVE container.
            UnsupportedFormatError: If the samples are not linear PCM.
            OrderError: If ``data`` precedes ``fmt ``.
            MissingChunkError: If ``fmt `` or ``data`` is absent.
        """
        try:
            self._file_chunk = Chunk.open_read(source)
        except OpenError:
            raise
        except RiffError as e:
            raise FormatError("File too small to be a valid WAVE file") from e

        self.comptype = COMPTYPE_NONE
        self.compname = COMPNAME_NONE

        try:
            self._format, self._data_index = self._read_header()
        except Exception:
            self._file_chunk.close()
            raise

        data_chunk = self._file_chunk.subchunks[self._data_index]
        self._num_frames = data_chunk.size // self._format.frame_size
        logger.debug("Parsed WAVE header: %s, %d frames", self._format, self._num_frames)

    def _read_header(self) -> tuple[WaveFormat, int]:
        """Check the RIFF/WAVE ids and locate the ``fmt `` and ``data`` chunks.

        Returns:
            The parsed format and the index of the ``data`` chunk in the
            root chunk's ``subchunks``.
        """
        file_chunk = self._file_chunk
        if file_chunk.id != RIFF_ID:
            raise FormatError("File does not start with RIFF id", chunk_id=file_chunk.id)

        try:
            form = file_chunk.read(4)
        except RiffError as e:
            raise FormatError("Not a WAVE file", chunk_id=file_chunk.id) from e
        if form != WAVE_ID:
            raise FormatError("Not a WAVE file", chunk_id=form)

        fmt: WaveFormat | None = None
        data_index: int | None = None
        for index, chunk in enumerate(file_chunk.parse_subchunks()):
            if chunk.id == FMT_ID:
                fmt = self._read_fmt_chunk(chunk)
            elif chunk.id == DATA_ID:
                if fmt is None:
                    raise OrderError("data chunk before fmt chunk", chunk_id=DATA_ID)
                data_index = index
                break

        if fmt is None or data_index is None:
            missing = [FMT_ID] if fmt is None else []
            if data_index is None:
                missing.append(DATA_ID)
            names = " and ".join(repr(m.decode("ascii")) for m in missing)
            raise MissingChunkError(f"{names} chunk missing", chunk_id=missing[0])

        return fmt, data_index

    def _read_fmt_chunk(self, chunk: Chunk) -> WaveFormat:
        format_tag, channels, frame_rate, _, _ = _FMT_HEADER.unpack(
            chunk.read(_FMT_HEADER.size)
        )
        if format_tag != WAVE_FORMAT_PCM:
            raise UnsupportedFormatError(
                f"Unknown format: {FormatTag.describe(format_tag)}",
                chunk_id=chunk.id,
                format_tag=format_tag,
            )

        (bits_per_sample,) = struct.unpack("<H", chunk.read(2))
        sample_width = (bits_per_sample + 7) // 8

        if channels < 1:
            raise UnsupportedFormatError(
                "fmt chunk declares zero channels", chunk_id=chunk.id, format_tag=format_tag
            )
        if sample_width not in SUPPORTED_SAMPLE_WIDTHS:
            raise UnsupportedFormatError(
                f"Unsupported sample size: {bits_per_sample} bits",
                chunk_id=chunk.id,
                format_tag=format_tag,
            )

        self.comptype = COMPTYPE_NONE
        self.compname = COMPNAME_NONE
        return WaveFormat(
            channels=channels,
            sample_width=sample_width,
            frame_rate=frame_rate,
            format_tag=format_tag,
        )

    @property
    def format(self) -> WaveFormat:
        return self._format

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
    def frame_size(self) -> int:
        return self.format.frame_size

    @property
    def num_frames(self) -> int:
        return self._num_frames

    @property
    def info(self) -> WaveInfo:
        return WaveInfo(
            format=self.format,
            num_frames=self._num_frames,
            comptype=self.comptype,
            compname=self.compname,
        )

    @property
    def closed(self) -> bool:
        return self._file_chunk.closed

    def read_frames(self, num_frames: int) -> bytes:
        """Read the next ``num_frames`` raw frames from the ``data`` chunk.

        Raises:
            RiffError: If fewer frames remain in the chunk.
        """
        data_chunk = self._file_chunk.subchunks[self._data_index]
        return data_chunk.read(num_frames * self.frame_size)

    def close(self) -> None:
        self._file_chunk.close()

    def __enter__(self) -> "WaveReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class WaveWriter:
    """Write session producing a RIFF/WAVE file.

    Set channels, sample width and frame rate before the first call to
    :meth:`write_frames`; after that the format is frozen.

    Example:
        >>> with WaveWriter("out.wav") as writer:
        ...     writer.set_channels(1)
        ...     writer.set_sample_width(2)
        ...     writer.set_frame_rate(8000)
        ...     writer.write_frames(b"\\x00\\x00" * 8000, 8000)
    """

    def __init__(self, target: WaveSource) -> None:
        """Start a RIFF/WAVE container on ``target``.

        Raises:
            OpenError: If ``target`` is a path that cannot be opened.
        """
        self._file_chunk = Chunk.open_write(target, RIFF_ID)
        self._file_chunk.write(WAVE_ID)
        self._channels = 0
        self._sample_width = 0
        self._frame_rate = 0
        self._frames_written = 0
        self._header_written = False
        self._data_index: int | None = None
        self.comptype = COMPTYPE_NONE
        self.compname = COMPNAME_NONE

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def sample_width(self) -> int:
        return self._sample_width

    @property
    def frame_rate(self) -> int:
        return self._frame_rate

    @property
    def frames_written(self) -> int:
        return self._frames_written

    @property
    def header_written(self) -> bool:
        return self._header_written

    @property
    def closed(self) -> bool:
        return self._file_chunk.closed

    @property
    def format(self) -> WaveFormat:
        return WaveFormat(
            channels=self._channels,
            sample_width=self._sample_width,
            frame_rate=self._frame_rate,
        )

    def _check_mutable(self, field: str) -> None:
        if self._header_written:
            raise StateError(
                f"Cannot change {field} after starting to write", field=field
            )

    def set_channels(self, channels: int) -> None:
        self._check_mutable("channels")
        validate_channels(channels)
        self._channels = int(channels)

    def set_sample_width(self, sample_width: int) -> None:
        self._check_mutable("sample_width")
        validate_sample_width(sample_width)
        self._sample_width = int(sample_width)

    def set_frame_rate(self, frame_rate: int) -> None:
        self._check_mutable("frame_rate")
        validate_frame_rate(frame_rate)
        self._frame_rate = int(frame_rate)

    def set_format(self, fmt: WaveFormat) -> None:
        """Set channels, sample width and frame rate from ``fmt``."""
        self.set_channels(fmt.channels)
        self.set_sample_width(fmt.sample_width)
        self.set_frame_rate(fmt.frame_rate)

    def ensure_header_written(self) -> None:
        """Write the ``fmt `` chunk and open the ``data`` chunk, once.

        Raises:
            ValidationError: If channels, sample width or frame rate is unset.
        """
        if self._header_written:
            return

        if not self._channels:
            raise ValidationError("# channels not specified", field="channels")
        if not self._sample_width:
            raise ValidationError("sample width not specified", field="sample_width")
        if not self._frame_rate:
            raise ValidationError("frame rate not specified", field="frame_rate")

        payload = self.format.to_fmt_payload()
        self._file_chunk.add_subchunk(FMT_ID).write(payload)

        self._file_chunk.add_subchunk(DATA_ID)
        self._data_index = len(self._file_chunk.subchunks) - 1
        self._header_written = True
        logger.debug("Wrote WAVE header: %s", self.format)

    def write_frames(self, data: Any, num_frames: int) -> None:
        """Append ``num_frames`` raw interleaved frames.

        Args:
            data: Bytes-like object holding at least
                ``num_frames * channels * sample_width`` bytes.
            num_frames: Number of frames to take from ``data``.

        Raises:
            ValidationError: If the format is incomplete.
            ValueError: If ``data`` is shorter than ``num_frames`` frames.
        """
        self.ensure_header_written()
        if self._data_index is None:
            raise StateError("data chunk was never started")

        nbytes = num_frames * self._channels * self._sample_width
        payload = data if isinstance(data, (bytes, bytearray)) else memoryview(data).tobytes()
        if len(payload) < nbytes:
            raise ValueError(
                f"Buffer holds {len(payload)} bytes, {nbytes} are required "
                f"for {num_frames} frames"
            )

        self._file_chunk.subchunks[self._data_index].write(payload[:nbytes])
        self._frames_written += num_frames

    def close(self) -> None:
        """Finalize the header if needed, patch chunk sizes and release the file."""
        if self._file_chunk.closed:
            return
        try:
            self.ensure_header_written()
        finally:
            self._file_chunk.close()

    def __enter__(self) -> "WaveWriter":
        return self

    def __exit__(self, exc_type: Any, *exc_info: Any) -> None:
        if exc_type is not None:
            self._file_chunk.close()
        else:
            self.close()
