"""Audit trail for moving websites between database shards."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from datetime import datetime
from pwb.core.database import Base


class ShardAuditLog(Base):
    __tablename__ = "shard_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    website_id = Column(Integer, ForeignKey("websites.id"), nullable=False, index=True)
    old_shard_name = Column(String)
    new_shard_name = Column(String, nullable=False)
    changed_by_email = Column(String, nullable=False)
    notes = Column(Text)
    status = Column(String, default="completed", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
