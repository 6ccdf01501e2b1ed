import hmac

from .settings import Settings

def verify_secret(secret: str, settings: Settings) -> bool:
    # constant-time; an unset secret on the server side never matches
    if not settings.EXPECTED_SECRET:
        return False
    return hmac.compare_digest(secret.encode(), settings.EXPECTED_SECRET.encode())
