import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Collection(Base):
    __tablename__ = 'collections'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    # Fixed at creation
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_collections_user_id', 'user_id'),
        Index('idx_collections_organization_id', 'organization_id'),
    )


class SnippetCollection(Base):
    __tablename__ = 'snippet_collections'
    snippet_id = Column(UUID(as_uuid=True), ForeignKey('snippets.id', ondelete='CASCADE'), primary_key=True)
    collection_id = Column(UUID(as_uuid=True), ForeignKey('collections.id', ondelete='CASCADE'), primary_key=True)
    order = Column(Integer, nullable=False, default=0)
    added_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_snippet_collections_collection_order', 'collection_id', 'order'),
    )
