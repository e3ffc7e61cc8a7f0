"""Services for reading and writing LXV data."""

from lxv_codec.services.decoder import LXVDecoder, PeekableLineSource
from lxv_codec.services.encoder import LXVEncoder
from lxv_codec.services.file_format import (
    LXVFileFormatProvider,
    export_lxv,
    load_lxv,
    save_lxv,
)

__all__ = [
    "LXVDecoder",
    "LXVEncoder",
    "LXVFileFormatProvider",
    "PeekableLineSource",
    "export_lxv",
    "load_lxv",
    "save_lxv",
]
