import hashlib
import secrets


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def verify_password(candidate: str, secret: str) -> bool:
    if not secret or not candidate:
        return False
    return secrets.compare_digest(candidate.encode(), secret.encode())
