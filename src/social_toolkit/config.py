"""
Toolkit configuration.

'ToolkitSettings' carries the collection names used on the document store and
a handful of presentation limits. Services take an optional settings object and
fall back to the defaults. Every field can be overridden through a
'SOCIAL_TOOLKIT_*' environment variable (or a '.env' file) for deployments:

    SOCIAL_TOOLKIT_POSTS_COLLECTION=posts_staging
    SOCIAL_TOOLKIT_MAX_COMMENT_INDENT_DEPTH=4
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "SOCIAL_TOOLKIT_"


class ToolkitSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    posts_collection: str = "posts"
    comments_collection: str = "comments"
    conversations_collection: str = "conversations"
    messages_collection: str = "messages"
    users_collection: str = "users"
    communities_collection: str = "communities"

    max_comment_indent_depth: int = Field(default=3, ge=0)
    min_poll_options: int = Field(default=2, ge=2)
    max_poll_options: int = Field(default=6, ge=2)
    message_preview_length: int = Field(default=120, ge=1)

    @classmethod
    def from_env(cls) -> "ToolkitSettings":
        return cls()
