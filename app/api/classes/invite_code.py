"""Class invite codes: short random lowercase alphanumerics, unique per class."""

import secrets
import string

INVITE_CODE_LENGTH = 7
INVITE_CODE_ALPHABET = string.ascii_lowercase + string.digits


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """
    Generate an invite code such as "k3x9q2m".

    Uniqueness is enforced by the classes.invite_code constraint; callers retry
    on collision. Uses secrets so codes are not guessable.
    """
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))
