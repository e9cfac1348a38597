import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Tag(Base):
    __tablename__ = 'tags'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    # Null for the personal namespace, otherwise the owning organization's namespace
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        UniqueConstraint('name', 'organization_id', name='uq_tags_name_organization_id'),
        # NULLs never collide in a plain unique constraint, so the personal namespace needs its own index
        Index(
            'uq_tags_personal_name',
            'name',
            unique=True,
            postgresql_where=text('organization_id IS NULL'),
            sqlite_where=text('organization_id IS NULL'),
        ),
    )
