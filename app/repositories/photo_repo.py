# app/repositories/photo_repo.py
import uuid

from sqlmodel import Session, select

from app.models.photo import Photo


class PhotoRepository:
    """
    Data access layer for Photo.

    - Pure DB operations.
    - Photo ids arrive as strings from the cart; anything that is not a
      UUID simply does not exist.
    """

    @staticmethod
    def _parse_id(photo_id: str | uuid.UUID) -> uuid.UUID | None:
        if isinstance(photo_id, uuid.UUID):
            return photo_id
        try:
            return uuid.UUID(str(photo_id))
        except ValueError:
            return None

    def get_by_id(self, session: Session, photo_id: str | uuid.UUID) -> Photo | None:
        parsed = self._parse_id(photo_id)
        if parsed is None:
            return None
        return session.get(Photo, parsed)

    def get_many(self, session: Session, photo_ids: list[str]) -> dict[str, Photo]:
        """Return found photos keyed by their string id."""
        parsed = [p for p in (self._parse_id(pid) for pid in photo_ids) if p is not None]
        if not parsed:
            return {}
        stmt = select(Photo).where(Photo.id.in_(parsed))
        return {str(photo.id): photo for photo in session.exec(stmt).all()}

    def create(self, session: Session, photo: Photo) -> Photo:
        session.add(photo)
        session.commit()
        session.refresh(photo)
        return photo
