import random
import string
from datetime import datetime, timezone

ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str, length: int = 12) -> str:
    return f"{prefix}_" + "".join(random.choices(ID_ALPHABET, k=length))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
