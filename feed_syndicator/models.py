"""Data models for posts, attachments and synthesized feeds."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Literal, Mapping, Optional, Tuple, Union

import structlog
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

PHOTO_TYPES = ("photo", "cover_photo", "profile_media")
VIDEO_TYPES = ("video_autoplay", "video_direct_response_autoplay", "video_inline")

CACHE_FORMAT_VERSION = 1


class MediaKind(str, Enum):
    """Kinds of media the proxy endpoints can resolve."""

    IMAGE = "image"
    VIDEO = "video"


class PhotoAttachment(BaseModel):
    """A photo, cover photo or profile picture attached to a post."""

    model_config = ConfigDict(frozen=True)

    type: Literal["photo", "cover_photo", "profile_media"]
    target_id: Optional[str] = None
    image_src: Optional[str] = None


class VideoAttachment(BaseModel):
    """A video attached to a post. Rendered as a still image."""

    model_config = ConfigDict(frozen=True)

    type: Literal["video_autoplay", "video_direct_response_autoplay", "video_inline"]
    target_id: Optional[str] = None
    source: Optional[str] = None


LeafAttachment = Annotated[Union[PhotoAttachment, VideoAttachment], Field(discriminator="type")]


class AlbumAttachment(BaseModel):
    """A multi-item album. Children are leaves only, so nesting stops at one level."""

    model_config = ConfigDict(frozen=True)

    type: Literal["album"] = "album"
    title: str = ""
    target_id: Optional[str] = None
    children: Tuple[LeafAttachment, ...] = ()


Attachment = Annotated[
    Union[PhotoAttachment, VideoAttachment, AlbumAttachment], Field(discriminator="type")
]


def _leaf_from_graph(raw: Mapping[str, Any]) -> Optional[Union[PhotoAttachment, VideoAttachment]]:
    kind = raw.get("type")
    target_id = (raw.get("target") or {}).get("id")
    media = raw.get("media") or {}

    if kind in PHOTO_TYPES:
        return PhotoAttachment(
            type=kind, target_id=target_id, image_src=(media.get("image") or {}).get("src")
        )
    if kind in VIDEO_TYPES:
        return VideoAttachment(type=kind, target_id=target_id, source=media.get("source"))
    return None


def attachment_from_graph(
    raw: Mapping[str, Any]
) -> Optional[Union[PhotoAttachment, VideoAttachment, AlbumAttachment]]:
    """Build an attachment from a Graph API attachment object.

    Unknown attachment types yield None so newer upstream types pass through
    without breaking synthesis.
    """
    if raw.get("type") == "album":
        children = []
        for sub in (raw.get("subattachments") or {}).get("data", []):
            leaf = _leaf_from_graph(sub)
            if leaf is None:
                logger.debug("Skipping album child", type=sub.get("type"))
                continue
            children.append(leaf)
        return AlbumAttachment(
            title=raw.get("title") or "",
            target_id=(raw.get("target") or {}).get("id"),
            children=tuple(children),
        )

    leaf = _leaf_from_graph(raw)
    if leaf is None:
        logger.debug("Skipping unsupported attachment", type=raw.get("type"))
    return leaf


class Post(BaseModel):
    """A single upstream post, valid for one synthesis pass."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_time: str
    message: Optional[str] = None
    story: Optional[str] = None
    permalink_url: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()

    @classmethod
    def from_graph(cls, raw: Mapping[str, Any]) -> "Post":
        """Create a Post from a Graph API post object."""
        attachments = []
        for data in (raw.get("attachments") or {}).get("data", []):
            attachment = attachment_from_graph(data)
            if attachment is not None:
                attachments.append(attachment)

        return cls(
            id=str(raw["id"]),
            created_time=str(raw.get("created_time", "")),
            message=raw.get("message"),
            story=raw.get("story"),
            permalink_url=raw.get("permalink_url"),
            attachments=tuple(attachments),
        )


class MediaReference(BaseModel):
    """A reference to a piece of media that still has to become a URL."""

    model_config = ConfigDict(frozen=True)

    kind: MediaKind
    target_id: str


def _as_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


class FeedItem(BaseModel):
    """A normalized feed entry. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    html_body: str
    link: str
    published_at: AwareDatetime

    @field_validator("published_at")
    @classmethod
    def published_at_in_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class FeedMetadata(BaseModel):
    """Channel-level data for one subject."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    canonical_id: str
    link: str
    image_url: Optional[str] = None
    generated_at: AwareDatetime

    @field_validator("generated_at")
    @classmethod
    def generated_at_in_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


def newest_first(items: List[FeedItem]) -> List[FeedItem]:
    """Order items by publication time, most recent first.

    The sort is stable, so items sharing a timestamp keep their relative order.
    """
    return sorted(items, key=lambda item: item.published_at, reverse=True)


class CachedFeed(BaseModel):
    """The unit of cache storage: channel metadata plus its items.

    Serialized form: JSON where every datetime is ISO-8601 with an explicit
    UTC offset and ``format_version`` is 1.
    """

    format_version: Literal[1] = CACHE_FORMAT_VERSION
    metadata: FeedMetadata
    items: List[FeedItem] = Field(default_factory=list)

    def sorted_items(self) -> List[FeedItem]:
        return newest_first(self.items)
