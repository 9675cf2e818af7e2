import re, time
from typing import Optional, Sequence
from pydantic import BaseModel
from virtual_shop.core.errors import UploadRejected

MB = 1024 * 1024

IMAGE_TYPES = ('image/jpeg', 'image/jpg', 'image/png', 'image/gif', 'image/webp')
ICON_TYPES = IMAGE_TYPES + ('image/svg+xml',)
VIDEO_TYPES = ('video/mp4', 'video/webm', 'video/ogg', 'video/mov', 'video/avi')

class MediaClass(BaseModel):
    kind: str
    content_types: Sequence[str]
    max_bytes: int

IMAGE = MediaClass(kind='image', content_types=IMAGE_TYPES, max_bytes=10 * MB)
LARGE_ICON = MediaClass(kind='image', content_types=ICON_TYPES, max_bytes=10 * MB)
ICON = MediaClass(kind='image', content_types=ICON_TYPES, max_bytes=5 * MB)
VIDEO = MediaClass(kind='video', content_types=VIDEO_TYPES, max_bytes=50 * MB)

def _format_limit(n: int) -> str:
    return f'{n // MB}MB'

def check_upload(content_type: Optional[str], size: int, classes: Sequence[MediaClass]) -> MediaClass:
    """Pick the media class for the content type and enforce its size limit."""
    media = next((m for m in classes if content_type in m.content_types), None)
    if media is None:
        allowed = ', '.join(t for m in classes for t in m.content_types)
        raise UploadRejected(f'Invalid file type. Allowed types: {allowed}')
    if size > media.max_bytes:
        raise UploadRejected(f'File too large. Maximum size is {_format_limit(media.max_bytes)}.')
    return media

def sanitize_filename(name: str) -> str:
    return re.sub(r'[^a-zA-Z0-9.-]', '_', name or 'upload')

def timestamped(name: str, now_ms: Optional[int] = None) -> str:
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    return f'{ts}-{sanitize_filename(name)}'

def scene_background_key(scene_id: str, filename: str) -> str:
    return f'scenes/{scene_id}/backgrounds/{timestamped(filename)}'

def space_image_key(space_id: str, filename: str) -> str:
    return f'spaces/{space_id}/images/{timestamped(filename)}'

def placement_image_key(scene_id: str, placement_id: str, filename: str) -> str:
    return f'scenes/{scene_id}/placements/{placement_id}/{timestamped(filename)}'

def product_image_key(filename: str) -> str:
    return f'products/{timestamped(filename)}'

def theme_image_key(filename: str) -> str:
    return f'themes/{timestamped(filename)}'

def art_story_icon_key(story_id: str, filename: str) -> str:
    return f'art-stories/{story_id}/icon/{timestamped(filename)}'

def art_story_media_key(story_id: str, item_id: str, media: MediaClass, filename: str) -> str:
    folder = 'videos' if media.kind == 'video' else 'images'
    return f'art-stories/{story_id}/{folder}/{item_id}/{timestamped(filename)}'
