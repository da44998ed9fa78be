"""Unit tests for class invite code generation."""

import re

from app.api.classes.invite_code import INVITE_CODE_LENGTH, generate_invite_code


def test_invite_code_format() -> None:
    """Default code is 7 lowercase letters or digits."""
    code = generate_invite_code()
    assert len(code) == INVITE_CODE_LENGTH
    assert re.match(r"^[a-z0-9]{7}$", code)


def test_invite_code_custom_length() -> None:
    assert len(generate_invite_code(12)) == 12


def test_invite_codes_are_random() -> None:
    """36^7 possibilities: 20 calls should never all collide."""
    codes = {generate_invite_code() for _ in range(20)}
    assert len(codes) >= 2
