"""
Authentication Models

Identity attached to a request after bearer-token verification.
"""

from pydantic import BaseModel, Field, ConfigDict


class UserContext(BaseModel):
    """
    Verified caller identity.

    ``owner_id`` scopes history reads and writes; it is taken verbatim from
    the token's ``sub`` claim.
    """

    owner_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Stable identifier of the caller (token subject).",
    )

    issuer: str = Field(
        ...,
        min_length=1,
        description="Client that issued the token.",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",             # Prevents claim injection via unexpected fields
    )
