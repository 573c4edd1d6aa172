"""RIFF chunk utilities for WAVE files.

This module provides a small chunk accessor for RIFF containers. A root
``Chunk`` owns the underlying file handle and the ordered list of its
sub-chunks; everything above it (the WAVE reader and writer) only holds
indexes into that list.

Chunks are read and written sequentially. When writing, only the most
recently added sub-chunk accepts payload bytes; adding a new sub-chunk
finalizes the previous one, and closing the root back-patches every size
field and pads odd-sized chunks to a word boundary.
"""

import logging
import os
import struct
from pathlib import Path
from typing import BinaryIO

from pcmwave.types import WaveSource

logger = logging.getLogger(__name__)

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

# Audio format codes
WAVE_FORMAT_PCM = 1

CHUNK_HEADER_SIZE = 8
MAX_CHUNK_SIZE = 0xFFFFFFFF


class RiffError(Exception):
    """Error reading or writing RIFF files."""

    def __init__(self, message: str, chunk_id: bytes | None = None) -> None:
        self.chunk_id = chunk_id
        super().__init__(message)


class OpenError(RiffError):
    """The file backing a chunk could not be opened."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


def read_chunk_header(f: BinaryIO) -> tuple[bytes, int]:
    """Read a RIFF chunk header (FourCC + size).

    Args:
        f: File handle positioned at the start of a chunk.

    Returns:
        Tuple of (chunk_id, chunk_size).

    Raises:
        RiffError: If the header cannot be read.
    """
    header = f.read(CHUNK_HEADER_SIZE)
    if len(header) < CHUNK_HEADER_SIZE:
        raise RiffError("Unexpected end of file reading chunk header")

    chunk_id = header[:4]
    chunk_size = struct.unpack("<I", header[4:8])[0]
    return chunk_id, chunk_size


def _open_file(source: WaveSource, mode: str) -> tuple[BinaryIO, bool]:
    """Open ``source`` if it is a path, returning (file, owns_file)."""
    if not isinstance(source, (str, os.PathLike)):
        return source, False

    path = Path(source)
    try:
        f = open(path, mode)
    except FileNotFoundError as e:
        logger.debug("Cannot open %s: %s", path, e)
        raise OpenError(f"File not found: {path}", path=path) from e
    except OSError as e:
        logger.debug("Cannot open %s: %s", path, e)
        raise OpenError(f"Cannot open file: {path}", path=path) from e
    return f, True


class Chunk:
    """A RIFF chunk backed by a seekable binary file.

    Attributes:
        id: The four-byte chunk identifier.
        size: Declared payload length in bytes (excluding the pad byte).
        offset: Absolute file offset of the first payload byte.
        subchunks: Child chunks in file order. Owned by this chunk.
    """

    def __init__(
        self,
        file: BinaryIO,
        chunk_id: bytes,
        size: int,
        offset: int,
        *,
        parent: "Chunk | None" = None,
        writable: bool = False,
        owns_file: bool = False,
    ) -> None:
        self.file = file
        self.id = chunk_id
        self.size = size
        self.offset = offset
        self.subchunks: list[Chunk] = []
        self._parent = parent
        self._writable = writable
        self._owns_file = owns_file
        self._position = 0
        self._closed = False

    @classmethod
    def open_read(cls, source: WaveSource) -> "Chunk":
        """Open a chunk for reading at the current position of ``source``.

        Args:
            source: A path, or a readable and seekable binary file object.

        Returns:
            The root chunk. It owns the file handle if it opened it.

        Raises:
            OpenError: If ``source`` is a path that cannot be opened.
            RiffError: If the chunk header cannot be read.
        """
        f, owns_file = _open_file(source, "rb")
        try:
            chunk_id, size = read_chunk_header(f)
        except RiffError:
            if owns_file:
                f.close()
            raise
        return cls(f, chunk_id, size, f.tell(), owns_file=owns_file)

    @classmethod
    def open_write(cls, target: WaveSource, chunk_id: bytes) -> "Chunk":
        """Start a new chunk at the current position of ``target``.

        The size field is written as a placeholder and patched on close.

        Raises:
            OpenError: If ``target`` is a path that cannot be opened.
        """
        f, owns_file = _open_file(target, "wb")
        f.write(chunk_id + struct.pack("<I", 0))
        return cls(f, chunk_id, 0, f.tell(), writable=True, owns_file=owns_file)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def remaining(self) -> int:
        """Payload bytes not yet consumed by :meth:`read`."""
        return self.size - self._position

    def read(self, nbytes: int) -> bytes:
        """Read ``nbytes`` from the chunk payload, advancing the cursor.

        Raises:
            RiffError: If the chunk or the file holds fewer than ``nbytes``
                unread bytes.
        """
        if self._closed:
            raise RiffError(f"Cannot read from closed {self.id!r} chunk", chunk_id=self.id)
        if nbytes > self.remaining:
            raise RiffError(
                f"Cannot read {nbytes} bytes from {self.id!r} chunk, "
                f"only {self.remaining} remain",
                chunk_id=self.id,
            )

        self.file.seek(self.offset + self._position)
        data = self.file.read(nbytes)
        if len(data) < nbytes:
            raise RiffError(
                f"Unexpected end of file reading {self.id!r} chunk", chunk_id=self.id
            )
        self._position += nbytes
        return data

    def write(self, data: bytes | bytearray | memoryview) -> None:
        """Append ``data`` to the chunk payload.

        Raises:
            RiffError: If the chunk is read-only, closed, or no longer the
                last open chunk in the file.
        """
        if not self._writable:
            raise RiffError(f"{self.id!r} chunk is not writable", chunk_id=self.id)
        if self._closed:
            raise RiffError(f"Cannot write to closed {self.id!r} chunk", chunk_id=self.id)
        if self.subchunks:
            raise RiffError(
                f"Cannot append payload to {self.id!r} chunk after its sub-chunks",
                chunk_id=self.id,
            )

        self.file.seek(self.offset + self.size)
        self.file.write(data)
        self.size += len(data)

    def parse_subchunks(self) -> list["Chunk"]:
        """Enumerate child chunks from the cursor to the end of the payload.

        Children are recorded in file order. Odd-sized children are followed
        by a pad byte, which is skipped. A child whose declared size runs past
        the end of the file is clamped to the bytes actually present.

        Returns:
            The populated ``subchunks`` list.
        """
        file_end = self.file.seek(0, os.SEEK_END)
        end = min(self.offset + self.size, file_end)
        position = self.offset + self._position

        self.subchunks = []
        while position + CHUNK_HEADER_SIZE <= end:
            self.file.seek(position)
            chunk_id, size = read_chunk_header(self.file)
            payload = position + CHUNK_HEADER_SIZE

            if payload + size > file_end:
                logger.debug(
                    "Chunk %r declares %d bytes but only %d remain; truncating",
                    chunk_id,
                    size,
                    file_end - payload,
                )
                size = file_end - payload

            logger.debug("Found %r chunk at offset %d (%d bytes)", chunk_id, position, size)
            self.subchunks.append(Chunk(self.file, chunk_id, size, payload, parent=self))

            # Skip to next chunk (with word alignment padding)
            position = payload + size + (size % 2)

        return self.subchunks

    def add_subchunk(self, chunk_id: bytes) -> "Chunk":
        """Finalize the last open child and start a new writable one."""
        if not self._writable or self._closed:
            raise RiffError(f"Cannot add sub-chunk to {self.id!r} chunk", chunk_id=self.id)

        if self.subchunks:
            self.subchunks[-1]._finalize()

        header_offset = self._payload_end()
        self.file.seek(header_offset)
        self.file.write(chunk_id + struct.pack("<I", 0))

        child = Chunk(
            self.file,
            chunk_id,
            0,
            header_offset + CHUNK_HEADER_SIZE,
            parent=self,
            writable=True,
        )
        self.subchunks.append(child)
        return child

    def close(self) -> None:
        """Finalize (when writing) and release the chunk. Safe to call repeatedly."""
        if self._closed:
            return

        try:
            if self._writable:
                self._finalize()
                if self._parent is None:
                    self.file.flush()
        finally:
            self._closed = True
            if self._owns_file:
                self.file.close()

    def _payload_end(self) -> int:
        """Absolute offset just past the payload, including child padding."""
        if self.subchunks:
            last = self.subchunks[-1]
            end = last._payload_end()
            return end + (end - last.offset) % 2
        return self.offset + self.size

    def _finalize(self) -> None:
        if not self._writable or self._closed:
            return

        for child in self.subchunks:
            child._finalize()
        if self.subchunks:
            self.size = self._payload_end() - self.offset

        if self.size > MAX_CHUNK_SIZE:
            raise RiffError(
                f"{self.id!r} chunk exceeds the 4 GiB RIFF limit", chunk_id=self.id
            )

        self.file.seek(self.offset - 4)
        self.file.write(struct.pack("<I", self.size))

        # Pad for word alignment
        if self._parent is not None and self.size % 2:
            self.file.seek(self.offset + self.size)
            self.file.write(b"\x00")

        if self._parent is not None:
            self._closed = True

    def __enter__(self) -> "Chunk":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Chunk(id={self.id!r}, size={self.size}, offset={self.offset})"
