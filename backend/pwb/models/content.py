"""Navigation links and field keys seeded during provisioning."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, UniqueConstraint
from datetime import datetime
from pwb.core.database import Base
from pwb.core.tenant import TenantScoped


class Link(TenantScoped, Base):
    """A navigation link shown in the site header or footer."""

    __tablename__ = "links"
    __table_args__ = (UniqueConstraint("website_id", "slug", name="uq_link_website_slug"),)

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, nullable=False)
    link_url = Column(String)
    link_title = Column(String)
    placement = Column(String, default="top_nav")
    sort_order = Column(Integer, default=0)
    visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class FieldKey(TenantScoped, Base):
    """A translatable option for property fields (types, states, features)."""

    __tablename__ = "field_keys"
    __table_args__ = (UniqueConstraint("website_id", "global_key", name="uq_field_key_website_key"),)

    id = Column(Integer, primary_key=True, index=True)
    global_key = Column(String, nullable=False)
    tag = Column(String, nullable=False, index=True)
    label = Column(String)
    visible = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
