"""
Domain service: capture-date extraction from image metadata.
"""
import io
import logging
import re
from datetime import datetime
from typing import Callable, Optional

from PIL import Image

from app.domain.exceptions import MetadataParseError

logger = logging.getLogger(__name__)

# EXIF tag ids
EXIF_IFD_POINTER = 0x8769
DATE_TIME_ORIGINAL = 0x9003

_EXIF_DATE_SEGMENT = re.compile(r"^(\d{4}):(\d{2}):(\d{2})")


def normalize_exif_timestamp(raw: str) -> str:
    """Rewrite the leading 'YYYY:MM:DD' date segment as 'YYYY-MM-DD'."""
    return _EXIF_DATE_SEGMENT.sub(r"\1-\2-\3", raw.strip().rstrip("\x00"))


class ImageMetadataExtractor:
    """
    Reads the capture timestamp embedded in an image.

    Extraction never fails: missing or unreadable metadata yields the
    current time, so the date only ever affects what gets recorded.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now

    def extract_capture_date(self, data: bytes) -> datetime:
        """
        Return the EXIF DateTimeOriginal of an image, or now.

        Args:
            data: Raw image bytes

        Returns:
            Capture timestamp, or the current wall-clock time
        """
        try:
            return self._read_date_time_original(data)
        except MetadataParseError as e:
            logger.debug(f"No usable capture date, using current time: {e}")
            return self.clock()

    def _read_date_time_original(self, data: bytes) -> datetime:
        try:
            with Image.open(io.BytesIO(data)) as img:
                exif = img.getexif()
                raw = exif.get_ifd(EXIF_IFD_POINTER).get(DATE_TIME_ORIGINAL)
                if raw is None:
                    # Some writers put it in the primary IFD
                    raw = exif.get(DATE_TIME_ORIGINAL)
        except Exception as e:
            raise MetadataParseError(f"unreadable image metadata ({e})")

        if raw is None:
            raise MetadataParseError("no DateTimeOriginal tag")
        if isinstance(raw, bytes):
            raw = raw.decode("ascii", errors="replace")

        try:
            return datetime.fromisoformat(normalize_exif_timestamp(str(raw)))
        except ValueError as e:
            raise MetadataParseError(f"unparseable DateTimeOriginal {raw!r} ({e})")
