"""Attachment resolution.

Flattens a post's attachment tree into media references, then renders the
references into image fragments. Splitting the two steps lets a caller
collect the references of a whole feed and resolve them in one batch
before any markup is produced.
"""

from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Union
from urllib.parse import quote

from feed_syndicator.core.normalizer import escape_html
from feed_syndicator.models import (
    AlbumAttachment,
    MediaKind,
    MediaReference,
    PhotoAttachment,
    VideoAttachment,
)

MediaUrlFor = Callable[[MediaReference], str]


def _leaf_reference(leaf: Union[PhotoAttachment, VideoAttachment]) -> Optional[MediaReference]:
    if not leaf.target_id:
        return None
    if isinstance(leaf, PhotoAttachment):
        return MediaReference(kind=MediaKind.IMAGE, target_id=leaf.target_id)
    if isinstance(leaf, VideoAttachment):
        return MediaReference(kind=MediaKind.VIDEO, target_id=leaf.target_id)
    return None


def resolve_attachments(attachments: Iterable[object]) -> List[MediaReference]:
    """Flatten attachments into media references in source order.

    Albums contribute their direct children only. Leaves without a target id
    and unsupported attachment objects are skipped.
    """
    references: List[MediaReference] = []

    for attachment in attachments:
        if isinstance(attachment, AlbumAttachment):
            leaves: Sequence[object] = attachment.children
        elif isinstance(attachment, (PhotoAttachment, VideoAttachment)):
            leaves = (attachment,)
        else:
            continue

        for leaf in leaves:
            if not isinstance(leaf, (PhotoAttachment, VideoAttachment)):
                continue
            reference = _leaf_reference(leaf)
            if reference is not None:
                references.append(reference)

    return references


class ProxyMediaUrls:
    """Point media at this service's proxy endpoints.

    The proxy resolves the best media source at request time, so feeds never
    embed upstream URLs that may expire.
    """

    def __init__(self, proxy_base: str):
        self.proxy_base = proxy_base.rstrip("/")

    def __call__(self, reference: MediaReference) -> str:
        return f"{self.proxy_base}/{reference.kind.value}/{quote(reference.target_id, safe='')}"


class ResolvedMediaUrls:
    """Use pre-resolved image URLs, falling back to another resolver."""

    def __init__(self, resolved: Mapping[str, str], fallback: MediaUrlFor):
        self.resolved = resolved
        self.fallback = fallback

    def __call__(self, reference: MediaReference) -> str:
        if reference.kind is MediaKind.IMAGE and reference.target_id in self.resolved:
            return self.resolved[reference.target_id]
        return self.fallback(reference)


def media_fragment(url: str) -> str:
    return f'\n<br><img src="{escape_html(url)}">'


def render_media(references: Iterable[MediaReference], url_for: MediaUrlFor) -> List[str]:
    """Render one image fragment per reference, preserving order."""
    return [media_fragment(url_for(reference)) for reference in references]
