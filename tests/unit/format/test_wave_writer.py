"""Unit tests for the WAVE writer session."""

import io
import struct
from pathlib import Path

import numpy as np
import pytest

from pcmwave.format.riff import OpenError
from pcmwave.format.types import WaveFormat
from pcmwave.format.validation import StateError, ValidationError
from pcmwave.format.wave import WaveReader, WaveWriter
from pcmwave.types import WaveSource


def _configured_writer(f: WaveSource, channels: int = 1, width: int = 2) -> WaveWriter:
    writer = WaveWriter(f)
    writer.set_channels(channels)
    writer.set_sample_width(width)
    writer.set_frame_rate(8000)
    return writer


class TestWaveWriterHeader:
    """Tests for the bytes the writer produces."""

    def test_exact_bytes(self) -> None:
        f = io.BytesIO()
        writer = _configured_writer(f, channels=2, width=2)
        writer.write_frames(b"\x01\x00\x02\x00\x03\x00\x04\x00", 2)
        writer.close()

        expected = (
            b"RIFF"
            + struct.pack("<I", 4 + 24 + 8 + 8)
            + b"WAVE"
            + b"fmt "
            + struct.pack("<I", 16)
            + struct.pack("<HHIIHH", 1, 2, 8000, 8000 * 2 * 2, 4, 16)
            + b"data"
            + struct.pack("<I", 8)
            + b"\x01\x00\x02\x00\x03\x00\x04\x00"
        )
        assert f.getvalue() == expected

    def test_empty_file_is_valid(self) -> None:
        f = io.BytesIO()
        writer = _configured_writer(f)
        writer.close()

        f.seek(0)
        reader = WaveReader(f)
        assert reader.num_frames == 0
        assert reader.frame_rate == 8000

    def test_multiple_writes_accumulate(self) -> None:
        f = io.BytesIO()
        with _configured_writer(f) as writer:
            writer.write_frames(b"\x01\x00", 1)
            writer.write_frames(b"\x02\x00\x03\x00", 2)
            assert writer.frames_written == 3

        f.seek(0)
        reader = WaveReader(f)
        assert reader.num_frames == 3
        assert reader.read_frames(3) == b"\x01\x00\x02\x00\x03\x00"

    def test_odd_data_length_is_padded(self) -> None:
        f = io.BytesIO()
        with _configured_writer(f, width=1) as writer:
            writer.write_frames(b"\x80\x81\x82", 3)

        data = f.getvalue()
        assert len(data) % 2 == 0
        assert data[-1:] == b"\x00"

        f.seek(0)
        assert WaveReader(f).num_frames == 3

    def test_write_frames_takes_only_requested_frames(self) -> None:
        f = io.BytesIO()
        with _configured_writer(f) as writer:
            writer.write_frames(b"\x01\x00\x02\x00\x03\x00", 2)

        f.seek(0)
        assert WaveReader(f).num_frames == 2

    def test_write_frames_accepts_numpy(self) -> None:
        f = io.BytesIO()
        with _configured_writer(f) as writer:
            writer.write_frames(np.array([1, -1], dtype="<i2"), 2)

        f.seek(0)
        assert WaveReader(f).read_frames(2) == b"\x01\x00\xff\xff"

    def test_short_buffer(self) -> None:
        writer = _configured_writer(io.BytesIO())
        with pytest.raises(ValueError):
            writer.write_frames(b"\x00\x00", 2)

    def test_set_format(self) -> None:
        f = io.BytesIO()
        with WaveWriter(f) as writer:
            writer.set_format(WaveFormat(channels=2, sample_width=3, frame_rate=44100))

        f.seek(0)
        reader = WaveReader(f)
        assert (reader.channels, reader.sample_width, reader.frame_rate) == (2, 3, 44100)

    def test_setters_can_be_repeated_before_header(self) -> None:
        f = io.BytesIO()
        with _configured_writer(f) as writer:
            writer.set_frame_rate(22050)

        f.seek(0)
        assert WaveReader(f).frame_rate == 22050

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        writer = _configured_writer(tmp_path / "out.wav")
        writer.close()
        writer.close()
        assert writer.closed

    def test_unwritable_path(self, tmp_path: Path) -> None:
        with pytest.raises(OpenError):
            WaveWriter(tmp_path / "missing" / "out.wav")


class TestWaveWriterValidation:
    """Tests for format validation and state errors."""

    @pytest.mark.parametrize("channels", [0, -1, 0x10000])
    def test_bad_channels(self, channels: int) -> None:
        writer = WaveWriter(io.BytesIO())
        with pytest.raises(ValidationError) as exc_info:
            writer.set_channels(channels)
        assert exc_info.value.field == "channels"

    @pytest.mark.parametrize("width", [0, 5, -2])
    def test_bad_sample_width(self, width: int) -> None:
        writer = WaveWriter(io.BytesIO())
        with pytest.raises(ValidationError) as exc_info:
            writer.set_sample_width(width)
        assert exc_info.value.field == "sample_width"

    @pytest.mark.parametrize("rate", [0, -8000])
    def test_bad_frame_rate(self, rate: int) -> None:
        writer = WaveWriter(io.BytesIO())
        with pytest.raises(ValidationError) as exc_info:
            writer.set_frame_rate(rate)
        assert exc_info.value.field == "frame_rate"

    @pytest.mark.parametrize(
        ("setter", "value"),
        [
            ("set_channels", 2.0),
            ("set_channels", True),
            ("set_sample_width", 2.0),
            ("set_frame_rate", 8000.0),
            ("set_frame_rate", 8000.5),
            ("set_frame_rate", "8000"),
        ],
    )
    def test_non_integer_values(self, setter: str, value: object) -> None:
        writer = WaveWriter(io.BytesIO())
        with pytest.raises(ValidationError) as exc_info:
            getattr(writer, setter)(value)
        assert exc_info.value.field == setter.removeprefix("set_")

    def test_numpy_integers_are_accepted(self) -> None:
        f = io.BytesIO()
        with WaveWriter(f) as writer:
            writer.set_channels(np.int64(2))
            writer.set_sample_width(np.uint8(3))
            writer.set_frame_rate(np.int32(48000))

        f.seek(0)
        reader = WaveReader(f)
        assert (reader.channels, reader.sample_width, reader.frame_rate) == (2, 3, 48000)

    @pytest.mark.parametrize(
        ("missing", "setters"),
        [
            ("channels", {"sample_width": 2, "frame_rate": 8000}),
            ("sample_width", {"channels": 1, "frame_rate": 8000}),
            ("frame_rate", {"channels": 1, "sample_width": 2}),
        ],
    )
    def test_unset_field_on_first_write(self, missing: str, setters: dict[str, int]) -> None:
        writer = WaveWriter(io.BytesIO())
        for name, value in setters.items():
            getattr(writer, f"set_{name}")(value)

        with pytest.raises(ValidationError) as exc_info:
            writer.write_frames(b"", 0)
        assert exc_info.value.field == missing
        assert not writer.header_written

    def test_failed_header_leaves_no_partial_chunks(self) -> None:
        f = io.BytesIO()
        writer = WaveWriter(f)
        writer.set_channels(1)
        writer.set_sample_width(2)
        for _ in range(2):
            with pytest.raises(ValidationError):
                writer.write_frames(b"\x01\x00", 1)

        writer.set_frame_rate(8000)
        writer.write_frames(b"\x01\x00", 1)
        writer.close()

        assert f.getvalue().count(b"fmt ") == 1
        f.seek(0)
        reader = WaveReader(f)
        assert reader.frame_rate == 8000
        assert reader.read_frames(1) == b"\x01\x00"

    def test_failed_fmt_payload_is_not_written(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pack = WaveFormat.to_fmt_payload
        calls = []

        def fail_once(fmt: WaveFormat) -> bytes:
            calls.append(fmt)
            if len(calls) == 1:
                raise struct.error("required argument is not an integer")
            return pack(fmt)

        monkeypatch.setattr(WaveFormat, "to_fmt_payload", fail_once)

        f = io.BytesIO()
        writer = _configured_writer(f)
        with pytest.raises(struct.error):
            writer.ensure_header_written()
        assert not writer.header_written
        writer.close()

        assert f.getvalue().count(b"fmt ") == 1
        f.seek(0)
        assert WaveReader(f).num_frames == 0

    def test_close_without_format_still_releases(self, tmp_path: Path) -> None:
        writer = WaveWriter(tmp_path / "out.wav")
        with pytest.raises(ValidationError):
            writer.close()
        assert writer.closed

    @pytest.mark.parametrize(
        ("setter", "value"),
        [("set_channels", 2), ("set_sample_width", 1), ("set_frame_rate", 44100)],
    )
    def test_setters_after_header(self, setter: str, value: int) -> None:
        writer = _configured_writer(io.BytesIO())
        writer.write_frames(b"", 0)
        assert writer.header_written

        with pytest.raises(StateError) as exc_info:
            getattr(writer, setter)(value)
        assert exc_info.value.field == setter.removeprefix("set_")

    def test_state_error_precedes_validation(self) -> None:
        writer = _configured_writer(io.BytesIO())
        writer.ensure_header_written()

        with pytest.raises(StateError):
            writer.set_channels(0)

    def test_exception_in_with_block_is_not_masked(self) -> None:
        with pytest.raises(RuntimeError):
            with WaveWriter(io.BytesIO()):
                raise RuntimeError("boom")
