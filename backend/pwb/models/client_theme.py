"""Themes for client-rendered (Astro) websites."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, JSON
from datetime import datetime
from pwb.core.database import Base


class ClientTheme(Base):
    """A theme served by the external client renderer."""

    __tablename__ = "client_themes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    friendly_name = Column(String, nullable=False)
    version = Column(String, default="1.0.0")
    description = Column(Text)
    preview_image_url = Column(String)
    default_config = Column(JSON, default=dict)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
