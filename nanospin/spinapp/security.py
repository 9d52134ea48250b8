import base64
import hashlib
import hmac
import time


def _sig(secret: str, msg: bytes) -> str:
    sig = hmac.new(secret.encode(), msg, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(sig).decode().rstrip("=")


def sign_admin_token(secret: str, ttl_seconds: int = 24 * 3600) -> str:
    exp = int(time.time()) + ttl_seconds
    return f"admin.{exp}.{_sig(secret, f'admin:{exp}'.encode())}"


def verify_admin_token(secret: str, token: str) -> None:
    """Raise ValueError unless ``token`` is a live admin token for ``secret``."""
    parts = token.split(".")
    if len(parts) != 3 or parts[0] != "admin":
        raise ValueError("bad token")
    _, exp_s, sig = parts
    try:
        exp = int(exp_s)
    except ValueError:
        raise ValueError("bad token")
    if exp < int(time.time()):
        raise ValueError("expired")
    if not hmac.compare_digest(_sig(secret, f"admin:{exp}".encode()), sig):
        raise ValueError("bad signature")
