"""
Content scanning for fsfind.

Scans a file incrementally for the first occurrence of a content pattern.
Reads are capped per line so memory use does not depend on the file size, and
the scan stops after a configurable number of bytes.
"""

import codecs
import re
from typing import Optional, Union

from ..models.search_results import ContentHit


# Maximum bytes read in one go; longer lines are scanned in pieces
READ_CHUNK_SIZE = 64 * 1024


def scan_content(path: Union[str, bytes], pattern: re.Pattern[str], max_bytes: Optional[int] = None,
                 encoding: str = 'utf-8', excerpt_length: int = 200) -> Optional[ContentHit]:
    """
    Find the first line of a file that contains the pattern.

    Lines longer than READ_CHUNK_SIZE are searched piecewise, so a match that
    spans two pieces of the same line is not found.

    Args:
        path: File to scan
        pattern: Compiled content pattern
        max_bytes: Stop scanning after this many bytes (None for no limit)
        encoding: Text encoding of the file
        excerpt_length: Maximum length of the excerpt kept for the hit

    Returns:
        ContentHit for the first match, or None if the pattern does not occur

    Raises:
        OSError: If the file cannot be opened or read
        UnicodeDecodeError: If the content is not valid in the given encoding
    """
    decoder = codecs.getincrementaldecoder(encoding)()
    bytes_read = 0
    line_number = 1
    line_offset = 0
    at_line_start = True

    with open(path, 'rb') as handle:
        while max_bytes is None or bytes_read < max_bytes:
            limit = READ_CHUNK_SIZE if max_bytes is None else min(READ_CHUNK_SIZE, max_bytes - bytes_read)
            raw = handle.readline(limit)
            if not raw:
                decoder.decode(b'', final=True)
                break

            if at_line_start:
                line_offset = bytes_read
            bytes_read += len(raw)

            text = decoder.decode(raw)
            found = pattern.search(text)
            if found:
                return _make_hit(text, found, line_number, line_offset, excerpt_length)

            at_line_start = raw.endswith(b'\n')
            if at_line_start:
                line_number += 1

    return None


def _make_hit(text: str, found: re.Match, line_number: int, line_offset: int,
              excerpt_length: int) -> ContentHit:
    line = text.rstrip('\r\n')
    end = min(found.end(), len(line))
    start = min(found.start(), end)

    if len(line) > excerpt_length:
        # Keep the match in view, with some leading context
        window_start = max(0, min(start - excerpt_length // 4, len(line) - excerpt_length))
        line = line[window_start:window_start + excerpt_length]
        start = min(start - window_start, len(line))
        end = min(end - window_start, len(line))

    return ContentHit(
        line_number=line_number,
        byte_offset=line_offset,
        excerpt=line,
        match_start=start,
        match_end=end,
    )
