"""
User profile and community data models.

Profiles hold the social graph ('following' / 'followers') that drives the
'following' feed channel. Communities keep their member ids and a denormalised
member counter.
"""

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """A user's public profile. 'following' is the id set consumed by the feed composer."""

    id: str
    username: str = ""
    university: str = ""
    avatar: str | None = None
    following: list[str] = Field(default_factory=list)
    followers: list[str] = Field(default_factory=list)
    joined_communities: list[str] = Field(default_factory=list)
    karma: int = 0


class Community(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str | None = None
    members: list[str] = Field(default_factory=list)
    member_count: int = 0
