"""
Database shard registry, health checks and website shard assignment.

Assignment only changes routing; moving existing rows between shard
databases is a separate operation.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pwb.core.database import available_shards, get_engine, shard_urls
from pwb.models.shard_audit_log import ShardAuditLog
from pwb.models.website import Website

logger = logging.getLogger(__name__)


class ShardRegistry:
    """Shards known to this deployment."""

    @staticmethod
    def logical_shards() -> List[str]:
        return available_shards()

    @staticmethod
    def configured(shard: Optional[str]) -> bool:
        return bool(shard) and shard in available_shards()

    @staticmethod
    def engine(shard: str):
        return get_engine(shard)

    @staticmethod
    def describe() -> List[Dict[str, Any]]:
        urls = shard_urls()
        described = []
        for name in available_shards():
            url = urls.get(name)
            described.append({
                "name": name,
                "configured": True,
                # Never expose credentials
                "database": url.rsplit("/", 1)[-1] if url else None,
            })
        return described


@dataclass
class HealthStatus:
    shard_name: str
    connection_status: bool
    checked_at: datetime
    avg_query_ms: Optional[float] = None
    error_message: Optional[str] = None

    @property
    def healthy(self) -> bool:
        return self.connection_status and self.avg_query_ms is not None and self.avg_query_ms < 1000

    @property
    def status_label(self) -> str:
        if not self.connection_status:
            return "Unhealthy"
        if self.avg_query_ms and self.avg_query_ms > 500:
            return "Slow"
        return "Healthy"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shard_name": self.shard_name,
            "connection_status": self.connection_status,
            "healthy": self.healthy,
            "status_label": self.status_label,
            "avg_query_ms": self.avg_query_ms,
            "error_message": self.error_message,
            "checked_at": self.checked_at.isoformat(),
        }


def health_check(shard: str, samples: int = 3) -> HealthStatus:
    checked_at = datetime.utcnow()
    if not ShardRegistry.configured(shard):
        return HealthStatus(shard, False, checked_at, error_message="Shard not configured")

    try:
        engine = ShardRegistry.engine(shard)
        timings = []
        with engine.connect() as connection:
            for _ in range(samples):
                started = time.perf_counter()
                connection.execute(text("SELECT 1"))
                timings.append((time.perf_counter() - started) * 1000)
    except SQLAlchemyError as e:
        logger.warning(f"Health check failed for shard '{shard}': {e}")
        return HealthStatus(shard, False, checked_at, error_message=str(e))

    return HealthStatus(shard, True, checked_at, avg_query_ms=round(sum(timings) / len(timings), 2))


@dataclass
class Result:
    success: bool
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def failure(self) -> bool:
        return not self.success


class ShardService:
    def __init__(self, db: Session, health_checker=health_check):
        self.db = db
        self.health_checker = health_checker

    def assign_shard(self, website: Website, new_shard: str, changed_by: str, notes: Optional[str] = None) -> Result:
        old_shard = website.shard_name or "default"

        if not ShardRegistry.configured(new_shard):
            available = ", ".join(ShardRegistry.logical_shards())
            return Result(False, error=f"Invalid shard: {new_shard}. Available shards: {available}")

        if old_shard == new_shard:
            return Result(False, error=f"Website is already on shard '{new_shard}'")

        health = self.health_checker(new_shard)
        if not health.connection_status:
            reason = health.error_message or "Connection failed"
            return Result(False, error=f"Cannot assign to shard '{new_shard}': {reason}")

        try:
            website.shard_name = new_shard
            self.db.add(ShardAuditLog(
                website_id=website.id,
                old_shard_name=old_shard,
                new_shard_name=new_shard,
                changed_by_email=changed_by,
                notes=notes,
                status="completed",
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Shard assignment failed for website {website.id}: {e}", exc_info=True)
            return Result(False, error=f"Failed to assign shard: {e}")

        logger.info(f"Website {website.id} moved from shard '{old_shard}' to '{new_shard}' by {changed_by}")
        return Result(True, data={"old_shard": old_shard, "new_shard": new_shard, "website_id": website.id})

    def shard_distribution(self) -> Dict[str, Any]:
        rows = self.db.query(Website.shard_name, func.count(Website.id)).group_by(Website.shard_name).all()
        distribution = {name or "default": count for name, count in rows}
        total = sum(distribution.values())
        percentages = {
            name: round(count / total * 100, 2) for name, count in distribution.items()
        } if total else {}
        return {"distribution": distribution, "total": total, "percentages": percentages}

    def audit_log(self, website: Website) -> List[ShardAuditLog]:
        return (
            self.db.query(ShardAuditLog)
            .filter(ShardAuditLog.website_id == website.id)
            .order_by(ShardAuditLog.created_at.desc(), ShardAuditLog.id.desc())
            .all()
        )
