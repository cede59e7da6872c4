from enum import Enum


class Role(str, Enum):
    CLIENT = "client"
    COMMERCIAL = "commercial"
    ADMIN = "admin"


ADMIN_MARKER = "adminvi25"
COMMERCIAL_MARKER = "coriscomvi25"


def resolve_role(email: str) -> Role:
    """
    Derive a role from the markers embedded in an email address.

    The admin marker is checked first, so an address carrying both
    markers resolves to admin.
    """
    email = email.lower()
    if ADMIN_MARKER in email:
        return Role.ADMIN
    if COMMERCIAL_MARKER in email:
        return Role.COMMERCIAL
    return Role.CLIENT
