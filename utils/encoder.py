import secrets
import string

ALPHABET = string.digits + string.ascii_letters


def generate_short_code(length: int = 8) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
