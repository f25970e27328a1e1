"""
Storage collaborator: turns a stored file reference into a URL the
speech-to-text provider can read.
"""

import logging
from typing import Optional

from supabase import AsyncClient

from app.core.config import StorageConfig
from app.shared.errors import ProviderUnavailable, ValidationError

logger = logging.getLogger("Memora.Services.Storage")


def is_remote_url(file_ref: str) -> bool:
    return file_ref.startswith(("http://", "https://"))


class SupabaseStorage:
    """Signed, time-limited URLs for objects in the media bucket."""

    def __init__(self, client: AsyncClient, config: StorageConfig):
        self.client = client
        self.config = config

    async def get_readable_url(self, file_ref: str, expires_in: Optional[int] = None) -> str:
        """
        Resolve `file_ref` to a readable URL.

        Already-public URLs (bot recordings) are returned unchanged; bucket keys
        get a signed URL valid for `expires_in` seconds.

        Raises:
            ValidationError: empty reference
            ProviderUnavailable: storage could not sign the URL
        """
        if not file_ref or not file_ref.strip():
            raise ValidationError("File reference is empty")
        if is_remote_url(file_ref):
            return file_ref

        ttl = expires_in or self.config.signed_url_ttl
        try:
            response = await self.client.storage.from_(self.config.bucket).create_signed_url(file_ref, ttl)
        except Exception as e:
            logger.error(f"Failed to sign URL for {file_ref}: {e}")
            raise ProviderUnavailable("storage", f"could not sign URL for {file_ref}") from e

        # storage3 has returned both spellings across versions
        url = response.get("signedURL") or response.get("signedUrl")
        if not url:
            raise ProviderUnavailable("storage", f"no signed URL returned for {file_ref}")
        return url
