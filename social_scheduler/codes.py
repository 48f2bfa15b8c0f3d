import random
import re
from typing import Optional

CLIENT_CODE_PREFIX = "CLI"
CLIENT_CODE_PATTERN = re.compile(r"^CLI[1-9]\d{3}$")


def generate_client_code(rng: Optional[random.Random] = None) -> str:
    """
    Return a shareable access code such as ``"CLI4821"``.

    Uniqueness is not checked here; the client registry rejects collisions.
    """
    rng = rng or random
    return f"{CLIENT_CODE_PREFIX}{rng.randint(1000, 9999)}"


def is_valid_client_code(code: Optional[str]) -> bool:
    return bool(code) and CLIENT_CODE_PATTERN.match(code) is not None
