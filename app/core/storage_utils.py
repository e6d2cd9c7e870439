# app/core/storage_utils.py
from app.core.config import get_settings
from app.core.supabase_client import supabase_admin


def create_signed_url(path: str, expires_in: int | None = None) -> str:
    """
    Create a time-limited download URL for an object in the originals bucket.

    Args:
        path: Object path inside the bucket.
              Example: "galleries/<gallery_id>/IMG_0042.jpg"
        expires_in: Lifetime in seconds; defaults to DOWNLOAD_URL_TTL_SECONDS.

    Returns:
        Signed URL.

    Raises:
        RuntimeError: if Supabase returns no URL.
        Any exception raised by Supabase client if signing fails.
    """
    settings = get_settings()
    ttl = expires_in or settings.DOWNLOAD_URL_TTL_SECONDS
    res = supabase_admin().storage.from_(settings.STORAGE_BUCKET).create_signed_url(path, ttl)
    # supabase-py has returned both spellings across versions
    url = res.get("signedURL") or res.get("signedUrl")
    if not url:
        raise RuntimeError(f"Supabase returned no signed URL for {path}")
    return url


def extract_path_from_public_url(url: str, bucket: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/previews/g/1.jpg
        -> 'g/1.jpg'
    """
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]
