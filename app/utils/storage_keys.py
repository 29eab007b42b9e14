"""
Object store key construction.
"""
import re
import uuid
from typing import Any, Optional

_UNSAFE_CHARACTERS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Replace every character outside [A-Za-z0-9.-] with '-'.

    Characters are replaced rather than stripped so word boundaries survive
    ('leaf photo.jpg' becomes 'leaf-photo.jpg') and new keys follow the same
    pattern as the keys already in the bucket.

    Args:
        filename: Original client-side filename

    Returns:
        Sanitized filename, 'image' when nothing usable remains
    """
    if not filename:
        return "image"
    # Drop any client-side directory components first
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    sanitized = _UNSAFE_CHARACTERS.sub("-", name)
    return sanitized if sanitized.strip(".-") else "image"


def build_upload_key(
    plant_id: Any,
    filename: Optional[str],
    user_id: Optional[Any] = None,
) -> str:
    """
    Build a fresh key for an uploaded plant image.

    Layout is `users/<user>/plants/<plant>/<uuid>-<name>` when the owner is
    known and `plants/<plant>/<uuid>-<name>` otherwise. The uuid component
    keeps concurrent uploads of the same filename apart.
    """
    unique_name = f"{uuid.uuid4()}-{sanitize_filename(filename)}"
    if user_id is not None and str(user_id) != "":
        return f"users/{user_id}/plants/{plant_id}/{unique_name}"
    return f"plants/{plant_id}/{unique_name}"
