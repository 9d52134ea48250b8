"""Shared fixtures."""

import pytest

from spinapp.chat import ChatMessage
from spinapp.nano import encode_account
from spinapp.participants import Participant


ADDR_A = "nano_37391u1nrr1j7tdn8w9zathoio5suz9bar18jksqheeiy4obwz3pkgp9aqz6"
ADDR_B = "nano_1iawmcfwmmdyr7xmnordt71gpnhnao8rsk4nywq5khtmedocaj6bafk4fb8h"


def account_for(n: int) -> str:
    """A valid address whose key is n repeated."""
    return encode_account(bytes([n]) * 32)


def participant(channel_id: str, account: str | None = None) -> Participant:
    return Participant(
        channel_id=channel_id,
        name=f"name for {channel_id}",
        account=account or account_for(42),
    )


def chat(author: str, text: str, name: str | None = "John Doe") -> ChatMessage:
    return ChatMessage(author_channel_id=author, author_name=name, message=text)


@pytest.fixture
def addr_a() -> str:
    return ADDR_A


@pytest.fixture
def addr_b() -> str:
    return ADDR_B
