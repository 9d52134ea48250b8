import os
from pathlib import Path
from dataclasses import dataclass

from dotenv import load_dotenv

from spinapp.nano import parse_nano


# Load .env from the project root (so `python -m spinapp.main` works without exporting vars)
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")


class ConfigError(Exception):
    """Startup configuration is missing or malformed; the process must not start."""


@dataclass(frozen=True)
class Settings:
    # 32 byte private key of the account paying the prizes.
    nano_prv_key: bytes
    # Overrides; None keeps the runner defaults.
    prize_raw: int | None
    raffle_interval: int | None
    rpc_url: str
    work_url: str
    # "rpc": node/work server generates PoW. "local": CPU search in a thread.
    work_backend: str
    http_host: str
    http_port: int
    base_url: str
    admin_secret: str
    # Participants snapshot, e.g. sqlite+aiosqlite:///./participants.db
    database_url: str
    # Telegram chat adapter; disabled when empty.
    bot_token: str
    target_chat_id: int | None
    log_level: str


def _parse_private_key(raw: str) -> bytes:
    if not raw:
        raise ConfigError("NANO_PRV_KEY is not set")
    try:
        key = bytes.fromhex(raw)
    except ValueError:
        raise ConfigError("NANO_PRV_KEY is not valid hex")
    if len(key) != 32:
        raise ConfigError("NANO_PRV_KEY must be 32 bytes (64 hex chars)")
    return key


def _parse_int(name: str, raw: str, minimum: int | None = None) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}")
    return value


def load_settings() -> Settings:
    nano_prv_key = _parse_private_key(os.getenv("NANO_PRV_KEY", "").strip())

    prize_raw = None
    prize_txt = os.getenv("NANO_PRIZE", "").strip()
    if prize_txt:
        try:
            prize_raw = parse_nano(prize_txt)
        except ValueError as e:
            raise ConfigError(f"NANO_PRIZE: {e}")

    raffle_interval = None
    interval_txt = os.getenv("RAFFLE_INTERVAL", "").strip()
    if interval_txt:
        raffle_interval = _parse_int("RAFFLE_INTERVAL", interval_txt, minimum=1)

    rpc_url = os.getenv("NANO_RPC_URL", "http://[::1]:7076").strip().rstrip("/")
    work_url = os.getenv("NANO_WORK_URL", "").strip().rstrip("/") or rpc_url

    work_backend = (os.getenv("WORK_BACKEND", "rpc").strip() or "rpc").lower()
    if work_backend not in ("rpc", "local"):
        raise ConfigError(f"WORK_BACKEND must be 'rpc' or 'local', got {work_backend!r}")

    http_host = os.getenv("HTTP_HOST", "0.0.0.0").strip() or "0.0.0.0"
    http_port = _parse_int("HTTP_PORT", os.getenv("HTTP_PORT", "8080").strip() or "8080", minimum=1)
    base_url = os.getenv("BASE_URL", f"http://127.0.0.1:{http_port}").strip().rstrip("/")

    admin_secret = os.getenv("ADMIN_SECRET", "").strip()
    if not admin_secret:
        # For dev convenience only. In production, MUST set a strong secret.
        admin_secret = "dev_secret_change_me"

    database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./participants.db").strip()

    bot_token = os.getenv("BOT_TOKEN", "").strip()
    target_chat_id = None
    target_chat_txt = os.getenv("TARGET_CHAT_ID", "").strip()
    if target_chat_txt:
        target_chat_id = _parse_int("TARGET_CHAT_ID", target_chat_txt)

    log_level = (os.getenv("LOG_LEVEL", "INFO").strip() or "INFO").upper()

    return Settings(
        nano_prv_key=nano_prv_key,
        prize_raw=prize_raw,
        raffle_interval=raffle_interval,
        rpc_url=rpc_url,
        work_url=work_url,
        work_backend=work_backend,
        http_host=http_host,
        http_port=http_port,
        base_url=base_url,
        admin_secret=admin_secret,
        database_url=database_url,
        bot_token=bot_token,
        target_chat_id=target_chat_id,
        log_level=log_level,
    )
