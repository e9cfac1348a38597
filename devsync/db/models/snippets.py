import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Snippet(Base):
    __tablename__ = 'snippets'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Creator; never reassigned
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    # Null for personal snippets; set at most once (promotion)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    code = Column(Text, nullable=False)
    language = Column(String(50), nullable=False)
    visibility = Column(String(20), nullable=False, default='private')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_snippets_user_id', 'user_id'),
        Index('idx_snippets_org_visibility', 'organization_id', 'visibility'),
        CheckConstraint("visibility in ('private','team','public')", name='ck_snippets_visibility'),
        CheckConstraint("organization_id IS NOT NULL OR visibility <> 'team'", name='ck_snippets_team_requires_org'),
    )


class SnippetTag(Base):
    __tablename__ = 'snippet_tags'
    snippet_id = Column(UUID(as_uuid=True), ForeignKey('snippets.id', ondelete='CASCADE'), primary_key=True)
    tag_id = Column(UUID(as_uuid=True), ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True)

    __table_args__ = (
        Index('idx_snippet_tags_tag_id', 'tag_id'),
    )
