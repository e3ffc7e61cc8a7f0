"""File and stream level entry points for the LXV format.

This module wraps the decoder and encoder with the parts that deal with
bytes: picking a text encoding (explicit, detected with chardet, or the
configured default), wrapping binary streams in a text layer for the length
of one call, and opening files by path.
"""

from __future__ import annotations

import codecs
import io
import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Union

import chardet

from lxv_codec.config import settings
from lxv_codec.grid import RangePosition, WorkbookGrid
from lxv_codec.grammar import SEPARATOR_PREFIX, SHEET_PREFIX
from lxv_codec.models import LXVFormatArgument
from lxv_codec.services.decoder import LXVDecoder
from lxv_codec.services.encoder import LXVEncoder
from lxv_codec.utils.exceptions import (
    ConfigurationError,
    EncodingError,
    LXVFileNotFoundError,
)
from lxv_codec.utils.logging import get_logger
from lxv_codec.workbook import Workbook, Worksheet

logger = get_logger(__name__)

LXV_EXTENSION = ".lxv"

PathOrStream = Union[str, os.PathLike, BinaryIO]
RangeSpec = Union[RangePosition, str, int]


class LXVFileFormatProvider:
    """Loads and saves workbooks as LXV over binary streams.

    The provider never closes the caller's stream: the text layer it adds is
    flushed and detached on every exit path.
    """

    # Tried in order when chardet is not confident enough
    FALLBACK_ENCODINGS = ["utf-8", "cp1252", "latin-1"]

    def __init__(self, decoder: LXVDecoder | None = None) -> None:
        self.decoder = decoder or LXVDecoder()

    # ------------------------------------------------------------------ #
    # Format recognition
    # ------------------------------------------------------------------ #

    def is_valid_format(self, path: str | os.PathLike[str]) -> bool:
        """Check for the ``.lxv`` extension, ignoring case."""
        return Path(path).suffix.lower() == LXV_EXTENSION

    def is_valid_stream(self, stream: BinaryIO) -> bool:
        """Sniff a seekable stream for a leading LXV sentinel line.

        The stream position is restored. Non-seekable streams are reported
        as not recognizable.
        """
        if not stream.seekable():
            return False
        position = stream.tell()
        try:
            head = stream.read(256)
        finally:
            stream.seek(position)

        encoding, _ = self._detect_encoding(head)
        text = codecs.getincrementaldecoder(encoding)(errors="replace").decode(head)
        text = text.lstrip("\ufeff")
        return text.startswith(SEPARATOR_PREFIX) or text.startswith(SHEET_PREFIX)

    # ------------------------------------------------------------------ #
    # Encoding detection
    # ------------------------------------------------------------------ #

    def detect_encoding(self, stream: BinaryIO) -> str:
        """Guess the encoding of a stream from a leading sample.

        Only seekable streams are sampled (and rewound); others get the
        configured default encoding.
        """
        if not stream.seekable():
            return settings.default_encoding
        position = stream.tell()
        try:
            sample = stream.read(settings.encoding_sample_bytes)
        finally:
            stream.seek(position)
        encoding, _ = self._detect_encoding(sample)
        return encoding

    def _detect_encoding(self, content: bytes) -> tuple[str, float]:
        """Detect the encoding of byte content.

        Returns:
            Tuple of (encoding_name, confidence_score).
        """
        if not content:
            return settings.default_encoding, 1.0

        result = chardet.detect(content)
        encoding = result.get("encoding")
        confidence = result.get("confidence", 0.0) or 0.0

        if encoding and confidence >= settings.min_encoding_confidence:
            encoding = self._normalize_encoding(encoding)
            # a pure-ASCII sample says nothing about the rest of the stream
            if encoding == "ascii":
                encoding = settings.default_encoding
            logger.debug(
                f"Detected encoding: {encoding} (confidence: {confidence:.2f})"
            )
            return encoding, confidence

        for fallback in self.FALLBACK_ENCODINGS:
            try:
                codecs.getincrementaldecoder(fallback)().decode(content, final=False)
                logger.debug(f"Using fallback encoding: {fallback}")
                return fallback, 0.5
            except (UnicodeError, LookupError):
                continue

        # latin-1 accepts any byte sequence
        logger.warning("Could not detect encoding, falling back to latin-1")
        return "latin-1", 0.3

    @staticmethod
    def _normalize_encoding(encoding: str) -> str:
        try:
            return codecs.lookup(encoding).name
        except LookupError:
            return encoding.lower()

    @staticmethod
    def _check_encoding(encoding: str) -> str:
        try:
            return codecs.lookup(encoding).name
        except LookupError as e:
            raise ConfigurationError(
                f"Unknown text encoding: {encoding}",
                field_name="encoding",
                value=encoding,
            ) from e

    @contextmanager
    def _text_stream(
        self, stream: BinaryIO, encoding: str, writing: bool
    ) -> Generator[io.TextIOWrapper, None, None]:
        wrapper = io.TextIOWrapper(
            stream,  # type: ignore[arg-type]
            encoding=encoding,
            newline="\n" if writing else None,
        )
        try:
            yield wrapper
        finally:
            wrapper.detach()

    # ------------------------------------------------------------------ #
    # Load / save
    # ------------------------------------------------------------------ #

    def load(
        self,
        workbook: WorkbookGrid,
        stream: BinaryIO,
        encoding: str | None = None,
        arg: LXVFormatArgument | None = None,
    ) -> None:
        """Decode an LXV byte stream into ``workbook``, replacing its sheets.

        Raises:
            ConfigurationError: For invalid options or an unknown encoding,
                before anything is read.
            EncodingError: If the content does not decode.
        """
        arg = arg or LXVFormatArgument.from_settings(settings)
        arg.validate()
        encoding = (
            self._check_encoding(encoding) if encoding else self.detect_encoding(stream)
        )

        try:
            with self._text_stream(stream, encoding, writing=False) as text:
                self.decoder.decode(text, workbook, arg)
        except UnicodeDecodeError as e:
            raise EncodingError(
                f"Failed to decode LXV content as {encoding}: {e}",
                encoding=encoding,
            ) from e

    def save(
        self,
        workbook: WorkbookGrid,
        stream: BinaryIO,
        encoding: str | None = None,
        separator: str | None = None,
    ) -> None:
        """Encode every sheet of ``workbook`` onto a byte stream."""
        encoding = self._check_encoding(encoding or settings.default_encoding)
        encoder = LXVEncoder(separator)
        try:
            with self._text_stream(stream, encoding, writing=True) as text:
                encoder.encode(workbook, text)
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Workbook text cannot be encoded as {encoding}: {e}",
                encoding=encoding,
            ) from e

    def save_range(
        self,
        sheet: Worksheet,
        stream: BinaryIO,
        target: RangePosition,
        encoding: str | None = None,
        separator: str | None = None,
    ) -> None:
        """Encode one range of one sheet onto a byte stream."""
        encoding = self._check_encoding(encoding or settings.default_encoding)
        encoder = LXVEncoder(separator)
        try:
            with self._text_stream(stream, encoding, writing=True) as text:
                encoder.encode_range(sheet, target, text)
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Sheet text cannot be encoded as {encoding}: {e}",
                encoding=encoding,
            ) from e


def _is_path(value: object) -> bool:
    return isinstance(value, (str, os.PathLike))


def load_lxv(
    source: PathOrStream,
    workbook: Workbook | None = None,
    encoding: str | None = None,
    arg: LXVFormatArgument | None = None,
) -> Workbook:
    """Load an LXV file or byte stream.

    Args:
        source: Path of an LXV file, or a binary stream.
        workbook: Workbook to fill; a new one is created when omitted.
        encoding: Text encoding; detected when omitted.
        arg: Load options.

    Returns:
        The filled workbook.

    Raises:
        LXVFileNotFoundError: If ``source`` is a path that does not exist.
    """
    workbook = workbook if workbook is not None else Workbook()
    provider = LXVFileFormatProvider()

    if not _is_path(source):
        provider.load(workbook, source, encoding, arg)  # type: ignore[arg-type]
        return workbook

    path = Path(source)  # type: ignore[arg-type]
    if not path.exists():
        raise LXVFileNotFoundError(str(path))
    with path.open("rb") as fp:
        provider.load(workbook, fp, encoding, arg)
    logger.info("Loaded LXV file", path=str(path), sheets=len(workbook))
    return workbook


def save_lxv(
    workbook: WorkbookGrid,
    target: PathOrStream,
    encoding: str | None = None,
    separator: str | None = None,
) -> None:
    """Save a workbook to an LXV file or byte stream."""
    provider = LXVFileFormatProvider()

    if not _is_path(target):
        provider.save(workbook, target, encoding, separator)  # type: ignore[arg-type]
        return

    path = Path(target)  # type: ignore[arg-type]
    with path.open("wb") as fp:
        provider.save(workbook, fp, encoding, separator)
    logger.info("Saved LXV file", path=str(path), sheets=len(workbook))


def resolve_export_range(sheet: Worksheet, spec: RangeSpec) -> RangePosition:
    """Turn an export range argument into a position.

    An int is a start row (export from that row to the end), a string is a
    named range or an A1 address.

    Raises:
        InvalidAddressError: If a string resolves to nothing.
    """
    if isinstance(spec, RangePosition):
        return spec
    if isinstance(spec, int):
        return RangePosition(spec, 0, -1, -1)
    return sheet.resolve_range(spec)


def export_lxv(
    sheet: Worksheet,
    target: PathOrStream,
    export_range: RangeSpec = 0,
    encoding: str | None = None,
    separator: str | None = None,
) -> None:
    """Export one range of a sheet as a single-sheet LXV document.

    The range is resolved before the target file is created, so a bad
    address leaves no empty file behind.
    """
    position = resolve_export_range(sheet, export_range)
    provider = LXVFileFormatProvider()

    if not _is_path(target):
        provider.save_range(sheet, target, position, encoding, separator)  # type: ignore[arg-type]
        return

    path = Path(target)  # type: ignore[arg-type]
    with path.open("wb") as fp:
        provider.save_range(sheet, fp, position, encoding, separator)
    logger.info(
        "Exported LXV range",
        path=str(path),
        sheet=sheet.name,
        range=position.to_address(),
    )
