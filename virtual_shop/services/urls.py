"""Translation between stored object keys and public URLs.

Rows store object keys (``scenes/12/backgrounds/1700000000000-hall.png``),
but older rows may still hold the full public URL. Read paths go through
:meth:`StorageUrls.resolve`, which only converts values that are not URLs
already.
"""
import re
from typing import Optional

# (host, key) capture groups; the key is always the last group
_URL_PATTERNS = (
    re.compile(r'^https://([^.]+)\.s3\.([^.]+)\.amazonaws\.com/(.+)$'),
    re.compile(r'^https://([^.]+)\.s3\.amazonaws\.com/(.+)$'),
    re.compile(r'^https://([^/]+)/(.+)$'),
)


class StorageUrls:
    def __init__(self, base_url: str, host_marker: str = '.s3.'):
        self.base_url = base_url.rstrip('/')
        self.host_marker = host_marker

    @classmethod
    def from_settings(cls, settings) -> 'StorageUrls':
        return cls(settings.public_base_url)

    def is_storage_url(self, value: Optional[str]) -> bool:
        if not value or not value.startswith('https://'):
            return False
        return self.host_marker in value or value.startswith(self.base_url + '/')

    def key_to_url(self, key: Optional[str]) -> Optional[str]:
        if not key:
            return None
        return f'{self.base_url}/{key}'

    def url_to_key(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        prefix = self.base_url + '/'
        if url.startswith(prefix):
            return url[len(prefix):]
        for pattern in _URL_PATTERNS:
            match = pattern.match(url)
            if match:
                return match.group(match.lastindex)
        # not a URL we know; treat it as a key already
        return url

    def resolve(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if self.is_storage_url(value):
            return value
        return self.key_to_url(value)

    def stored_key(self, value: Optional[str]) -> Optional[str]:
        """Key to purge for a stored value, or None for legacy URLs."""
        if not value or self.is_storage_url(value):
            return None
        return value
