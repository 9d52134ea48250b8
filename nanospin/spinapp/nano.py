from __future__ import annotations

import hashlib
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext

import ed25519_blake2b


# Nano's base32 alphabet (no 0, 2, l, v).
ALPHABET = "13456789abcdefghijkmnopqrstuwxyz"
_ALPHABET_INDEX = {c: i for i, c in enumerate(ALPHABET)}

ACCOUNT_PREFIXES = ("nano_", "xrb_")

RAW_PER_NANO = 10**30

# Preamble for state block hashing: 32 bytes, value 6.
STATE_BLOCK_PREAMBLE = (6).to_bytes(32, "big")

# Base threshold for send/change blocks since v21.
SEND_WORK_THRESHOLD = 0xFFFFFFF800000000


class InvalidAccount(ValueError):
    pass


def _checksum(public_key: bytes) -> bytes:
    return hashlib.blake2b(public_key, digest_size=5).digest()[::-1]


def _b32encode(value: int, chars: int) -> str:
    out = []
    for _ in range(chars):
        out.append(ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(out))


def _b32decode(text: str) -> int:
    value = 0
    for c in text:
        idx = _ALPHABET_INDEX.get(c)
        if idx is None:
            raise InvalidAccount(f"invalid character {c!r}")
        value = (value << 5) | idx
    return value


def encode_account(public_key: bytes) -> str:
    if len(public_key) != 32:
        raise InvalidAccount("public key must be 32 bytes")
    key_part = _b32encode(int.from_bytes(public_key, "big"), 52)
    check_part = _b32encode(int.from_bytes(_checksum(public_key), "big"), 8)
    return f"nano_{key_part}{check_part}"


def decode_account(text: str) -> bytes:
    """Decode a ``nano_``/``xrb_`` address into its 32 byte public key.

    Raises InvalidAccount for anything that is not a well-formed address
    with a matching checksum.
    """
    if not isinstance(text, str):
        raise InvalidAccount(f"not a string: {text!r}")
    for prefix in ACCOUNT_PREFIXES:
        if text.startswith(prefix):
            body = text[len(prefix):]
            break
    else:
        raise InvalidAccount("missing nano_ prefix")

    if len(body) != 60:
        raise InvalidAccount("wrong length")
    # 52 chars carry 260 bits; the top 4 must be zero.
    if body[0] not in "13":
        raise InvalidAccount("invalid leading character")

    key_value = _b32decode(body[:52])
    check_value = _b32decode(body[52:])
    public_key = key_value.to_bytes(32, "big")
    if check_value.to_bytes(5, "big") != _checksum(public_key):
        raise InvalidAccount("checksum mismatch")
    return public_key


def normalize_account(text: str) -> str:
    """Re-encode an address in canonical ``nano_`` form."""
    return encode_account(decode_account(text))


def is_valid_account(text: str) -> bool:
    try:
        decode_account(text)
    except InvalidAccount:
        return False
    return True


def parse_nano(text: str) -> int:
    """Convert a decimal Nano amount ("0.01") into raw."""
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        raise ValueError(f"not a decimal amount: {text!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"invalid amount: {text!r}")
    with localcontext() as ctx:
        ctx.prec = 80
        raw = value * RAW_PER_NANO
        if raw != raw.to_integral_value():
            raise ValueError(f"amount has more than 30 decimals: {text!r}")
        return int(raw)


def format_balance(raw: int, precision: int = 2) -> str:
    """Format raw as Nano, truncated to ``precision`` decimals."""
    whole, frac = divmod(raw, RAW_PER_NANO)
    if precision <= 0:
        return str(whole)
    frac_digits = f"{frac:030d}"[:precision]
    return f"{whole}.{frac_digits}"


def public_key_from_private(private_key: bytes) -> bytes:
    return ed25519_blake2b.SigningKey(private_key).get_verifying_key().to_bytes()


def work_value(work: int, root: bytes) -> int:
    h = hashlib.blake2b(work.to_bytes(8, "little") + root, digest_size=8).digest()
    return int.from_bytes(h, "little")


def work_valid(work: int, root: bytes, threshold: int = SEND_WORK_THRESHOLD) -> bool:
    return work_value(work, root) >= threshold


@dataclass(frozen=True)
class StateBlock:
    account: bytes
    previous: bytes
    representative: bytes
    balance: int
    link: bytes
    signature: bytes = b""
    work: int = 0

    def hash(self) -> bytes:
        h = hashlib.blake2b(digest_size=32)
        h.update(STATE_BLOCK_PREAMBLE)
        h.update(self.account)
        h.update(self.previous)
        h.update(self.representative)
        h.update(self.balance.to_bytes(16, "big"))
        h.update(self.link)
        return h.digest()

    def json_representation(self) -> dict:
        return {
            "type": "state",
            "account": encode_account(self.account),
            "previous": self.previous.hex().upper(),
            "representative": encode_account(self.representative),
            "balance": str(self.balance),
            "link": self.link.hex().upper(),
            "link_as_account": encode_account(self.link),
            "signature": self.signature.hex().upper(),
            "work": f"{self.work:016x}",
        }


def sign_state_block(block: StateBlock, private_key: bytes) -> StateBlock:
    sk = ed25519_blake2b.SigningKey(private_key)
    signature = sk.sign(block.hash())
    return StateBlock(
        account=block.account,
        previous=block.previous,
        representative=block.representative,
        balance=block.balance,
        link=block.link,
        signature=signature,
        work=block.work,
    )
