"""Message conversion between GitHub Discussions and Discord."""

from .common import (
    CONTINUATION_MARKER,
    DISCORD_MAX_LENGTH,
    GITHUB_MAX_LENGTH,
    RenderedMessage,
    SyncDirection,
    is_image_url,
    max_length_for,
)
from .images import image_normalize, images_to_chat, images_to_forum
from .messages import (
    attribution_header,
    is_attributed,
    length_clamp,
    render_message,
)

__all__ = [
    "CONTINUATION_MARKER",
    "DISCORD_MAX_LENGTH",
    "GITHUB_MAX_LENGTH",
    "RenderedMessage",
    "SyncDirection",
    "attribution_header",
    "image_normalize",
    "images_to_chat",
    "images_to_forum",
    "is_attributed",
    "is_image_url",
    "length_clamp",
    "max_length_for",
    "render_message",
]
