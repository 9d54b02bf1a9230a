"""Class join-code generation.

Codes are 6 characters over A-Z0-9. A fresh code is drawn until the
existence check reports no class using it.
"""

from __future__ import annotations

import random
import string
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)

CLASS_CODE_ALPHABET = string.ascii_uppercase + string.digits
CLASS_CODE_LENGTH = 6


def random_class_code(rng: random.Random | None = None) -> str:
    """Draw one code uniformly from the alphabet."""
    rng = rng or random
    return "".join(rng.choice(CLASS_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH))


def generate_class_code(
    code_exists: Callable[[str], bool],
    rng: random.Random | None = None,
) -> str:
    """Generate a code that `code_exists` reports as unused.

    The whole code is redrawn on every collision. There is no attempt
    limit: at 36^6 combinations a collision is already rare.

    Args:
        code_exists: Returns True if a class already uses the code
        rng: Optional random source (for deterministic tests)

    Returns:
        An unused class code
    """
    attempts = 0
    while True:
        attempts += 1
        code = random_class_code(rng)
        if not code_exists(code):
            if attempts > 1:
                logger.info("class_code.generated_after_retry", attempts=attempts)
            return code
        logger.debug("class_code.collision", code=code, attempt=attempts)
