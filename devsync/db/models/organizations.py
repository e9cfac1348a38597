import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, CheckConstraint, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Organization(Base):
    __tablename__ = 'organizations'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String, nullable=False, unique=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class OrganizationMembership(Base):
    __tablename__ = 'organization_memberships'
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), primary_key=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    role = Column(String, nullable=False)  # 'owner'|'admin'|'member'
    joined_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_org_memberships_user_id', 'user_id'),
        Index('idx_org_memberships_org_role', 'organization_id', 'role'),
        CheckConstraint("role in ('owner','admin','member')", name='ck_org_memberships_role'),
    )


class OrganizationInvitation(Base):
    __tablename__ = 'organization_invitations'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    email = Column(Text, nullable=False)
    invited_by_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = Column(Text, nullable=False)
    token = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # One live row per (email, organization); re-invites overwrite it
        UniqueConstraint('email', 'organization_id', name='uq_organization_invitations_email_org'),
        Index('ix_organization_invitations_organization_id', 'organization_id'),
        CheckConstraint("role in ('admin','member')", name='ck_organization_invitations_role'),
    )
