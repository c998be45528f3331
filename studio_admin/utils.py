import bcrypt


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt (with auto-generated salt)"""
    # rounds is the log2 work factor, each step doubles the hashing cost
    hashed_bytes = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed_bytes.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check if the provided password matches the stored hash"""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False  # Malformed hash


def mask_secret(secret: str) -> str:
    # Short secrets are hidden entirely
    if len(secret) < 4:
        return "*" * len(secret)
    return secret[0] + "*" * (len(secret) - 1)
