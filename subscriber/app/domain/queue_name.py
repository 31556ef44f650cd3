"""Random queue names for subscriptions created without one."""
from __future__ import annotations

import random
import string

QUEUE_NAME_LENGTH = 8
QUEUE_NAME_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_queue_name(rng: random.Random | None = None) -> str:
    """Return 8 characters drawn uniformly from [A-Za-z0-9].

    Not suitable for anything security sensitive. Pass ``rng`` for a deterministic sequence.
    """
    choice = rng.choice if rng is not None else random.choice
    return "".join(choice(QUEUE_NAME_ALPHABET) for _ in range(QUEUE_NAME_LENGTH))
