"""Short code generation.

Generated codes use the 62-symbol alphabet only. ``-`` and ``_`` are
accepted in caller-chosen codes but never produced here.
"""

import secrets
import string
from typing import Optional

ALPHABET = string.ascii_letters + string.digits


class ShortCodeGenerator:
    """Issue codes for new mappings.

    Codes come from ``secrets`` so they cannot be guessed from earlier ones.
    Uniqueness is left to the store.
    """

    BASE62_CHARS = ALPHABET

    def __init__(self, default_length: int = 8):
        if default_length < 1:
            raise ValueError("default_length must be positive")
        self.default_length = default_length

    def generate(self) -> str:
        return self.generate_random()

    def generate_random(self, length: Optional[int] = None) -> str:
        """Random code of ``length`` characters (default length when None)."""
        length = length or self.default_length
        return "".join(secrets.choice(ALPHABET) for _ in range(length))
