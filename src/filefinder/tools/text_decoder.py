"""
Binary detection and text decoding for content search.

The decoder turns arbitrary file bytes into searchable text. Binary content is
recognised from a short prefix and replaced by a fixed sentinel; text in a
handful of legacy encodings is converted, and anything left over is decoded
with invalid sequences stripped so that one unreadable file never aborts a walk.
"""

import codecs
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import (
    BinaryContentError,
    OversizedFileError,
    PermissionDeniedError,
    UndecodableContentError,
)


logger = logging.getLogger(__name__)

BINARY_SENTINEL = "[binary file]"

# Number of leading bytes inspected by the binary heuristic
SNIFF_BYTES = 512

# Fraction of control bytes above which content is treated as binary
NON_PRINTABLE_THRESHOLD = 0.3

_ALLOWED_CONTROL_BYTES = frozenset((9, 10, 13))

# Tried in order once strict UTF-8 fails; UTF-16 is only accepted with a BOM
LEGACY_ENCODINGS: List[Tuple[str, Optional[bytes]]] = [
    ('utf-16-le', codecs.BOM_UTF16_LE),
    ('utf-16-be', codecs.BOM_UTF16_BE),
    ('gb18030', None),
    ('cp1252', None),
]


@dataclass(frozen=True)
class DecodedContent:
    """Outcome of classifying a byte sequence."""
    is_binary: bool
    text: str

    @classmethod
    def binary(cls) -> 'DecodedContent':
        return cls(is_binary=True, text=BINARY_SENTINEL)


def is_binary_content(data: bytes) -> bool:
    """
    Check whether a byte sequence looks binary.

    Only the first SNIFF_BYTES bytes are inspected. A NUL byte, or more than
    30% control bytes other than tab, CR and LF, marks the content as binary.

    Args:
        data: Raw file content (or a prefix of it)

    Returns:
        True if the content appears to be binary
    """
    sample = data[:SNIFF_BYTES]
    if not sample:
        return False

    # UTF-16 text is full of NUL bytes; a BOM marks it as text
    if sample.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return False

    if b'\x00' in sample:
        return True

    non_printable = sum(
        1 for byte in sample
        if (byte < 32 and byte not in _ALLOWED_CONTROL_BYTES) or byte == 127
    )
    return non_printable / len(sample) > NON_PRINTABLE_THRESHOLD


def split_lines(text: str) -> List[str]:
    """Split text on LF, dropping CR line endings and a final empty line."""
    lines = [line[:-1] if line.endswith('\r') else line for line in text.split('\n')]
    if len(lines) > 1 and lines[-1] == '':
        lines.pop()
    return lines


class TextDecoder:
    """
    Classifies bytes as binary or text and normalizes text to str.

    The decoder is stateless apart from its size ceiling and is safe to share
    between threads.
    """

    def __init__(self, max_size: int = -1):
        """
        Initialize the decoder.

        Args:
            max_size: Content above this many bytes is rejected (<= 0 disables)
        """
        self.max_size = max_size

    def classify(self, data: bytes) -> DecodedContent:
        """
        Classify a byte sequence and decode it if it is text.

        Args:
            data: Raw file content

        Returns:
            DecodedContent carrying either the binary sentinel or the text

        Raises:
            OversizedFileError: If data exceeds the size ceiling
        """
        self._check_size(len(data))

        if is_binary_content(data):
            return DecodedContent.binary()

        return DecodedContent(is_binary=False, text=self.decode(data))

    def decode(self, data: bytes) -> str:
        """
        Decode text bytes, degrading to stripped UTF-8 if nothing else fits.

        Args:
            data: Raw text content

        Returns:
            Decoded text
        """
        try:
            return self.decode_strict(data)
        except UndecodableContentError as e:
            logger.debug(f"{e}; stripping invalid sequences")
            return data.decode('utf-8', errors='ignore')

    def decode_strict(self, data: bytes) -> str:
        """
        Decode text bytes using UTF-8 or one of the legacy encodings.

        Raises:
            UndecodableContentError: If no encoding yields valid text
        """
        try:
            return data.decode('utf-8-sig')
        except UnicodeDecodeError:
            pass

        for encoding, bom in LEGACY_ENCODINGS:
            if bom is not None:
                if not data.startswith(bom):
                    continue
                payload = data[len(bom):]
            else:
                payload = data

            try:
                text = payload.decode(encoding)
                # Lone surrogates decode fine but are not valid UTF-8
                text.encode('utf-8')
            except (UnicodeDecodeError, UnicodeEncodeError):
                continue

            logger.debug(f"Decoded content as {encoding}")
            return text

        raise UndecodableContentError(
            f"No known encoding fits {len(data)} bytes of content"
        )

    def read_file(self, file_path: str) -> DecodedContent:
        """
        Read and classify a file.

        The size ceiling is checked against the file's stat before any byte is
        read, so oversized files never reach the decoder.

        Raises:
            OversizedFileError: If the file exceeds the size ceiling
            PermissionDeniedError: If the file cannot be opened
            OSError: For any other read failure
        """
        try:
            size = os.stat(file_path).st_size
            self._check_size(size, file_path)

            with open(file_path, 'rb') as f:
                data = f.read()
        except PermissionError as e:
            raise PermissionDeniedError(file_path, e.strerror) from e

        return self.classify(data)

    def read_lines(self, file_path: str) -> List[str]:
        """
        Read a text file as a list of lines.

        Raises:
            BinaryContentError: If the file is binary
            OversizedFileError: If the file exceeds the size ceiling
            PermissionDeniedError: If the file cannot be opened
        """
        content = self.read_file(file_path)
        if content.is_binary:
            raise BinaryContentError(f"Binary file cannot be read as lines: {file_path}")
        return split_lines(content.text)

    def _check_size(self, size: int, file_path: Optional[str] = None) -> None:
        if self.max_size > 0 and size > self.max_size:
            raise OversizedFileError(size, self.max_size, file_path)
