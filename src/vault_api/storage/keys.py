"""Storage key generation.

Keys look like ``{owner_id}/{timestamp_ms}_{suffix}.{ext}``: scoped to the
owner, ordered by time and made unique by a random alphanumeric suffix.
"""

import secrets
import string
import time
from typing import Callable, Optional

KEY_ALPHABET = string.ascii_lowercase + string.digits
DEFAULT_SUFFIX_LENGTH = 10


def extract_extension(filename: str) -> str:
    """Return the text after the last `.` of `filename`, or "" if there is none.

    An extension containing a path separator is dropped; the key must stay a
    single segment below the owner prefix.
    """
    _, dot, ext = filename.rpartition(".")
    if not dot or "/" in ext or "\\" in ext:
        return ""
    return ext


class KeyGenerator:
    """Derives collision-resistant, owner-scoped storage keys.

    Args:
        suffix_length: Number of random characters drawn from [a-z0-9].
        clock: Returns wall-clock seconds; `time.time` by default.
        choice: Picks one character from a sequence; `secrets.choice` by default.
    """

    def __init__(
        self,
        suffix_length: int = DEFAULT_SUFFIX_LENGTH,
        clock: Optional[Callable[[], float]] = None,
        choice: Optional[Callable[[str], str]] = None,
    ):
        self.suffix_length = suffix_length
        self._clock = clock or time.time
        self._choice = choice or secrets.choice
        self._last_ms = 0

    def _timestamp_ms(self) -> int:
        # never step backwards when the wall clock does
        now_ms = max(int(self._clock() * 1000), self._last_ms)
        self._last_ms = now_ms
        return now_ms

    def _random_suffix(self) -> str:
        return "".join(self._choice(KEY_ALPHABET) for _ in range(self.suffix_length))

    def generate(self, owner_id: str, original_filename: str) -> str:
        """Build the storage key for one upload attempt."""
        key = f"{owner_id}/{self._timestamp_ms()}_{self._random_suffix()}"
        ext = extract_extension(original_filename)
        if ext:
            key = f"{key}.{ext}"
        return key
