# app/models/photo.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Photo(SQLModel, table=True):
    """
    A surf photo offered for sale.

    The watermarked preview is public; the original lives in the private
    storage bucket and is only reachable through signed URLs after payment.
    """

    __tablename__ = "photos"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    gallery_id: uuid.UUID | None = Field(
        default=None,
        index=True,
        description="Gallery (surf session) the photo belongs to",
    )

    filename: str = Field(
        max_length=255,
        description="Original filename, shown as the item name",
    )

    original_path: str = Field(
        description="Object path of the original inside the storage bucket",
    )

    preview_url: str | None = Field(
        default=None,
        description="Public watermarked preview URL",
    )

    is_published: bool = Field(
        default=True,
        index=True,
        description="Whether this photo can be purchased",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
