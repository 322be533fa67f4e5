"""
Per-request tenant context and automatic tenant scoping of ORM queries.

The current website id lives in a context variable. While it is set,
every ORM SELECT touching a ``TenantScoped`` model is filtered to that
website, and new ``TenantScoped`` rows are stamped with it.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Optional

from sqlalchemy import Column, Integer, event
from sqlalchemy.orm import ORMExecuteState, Session, declared_attr, with_loader_criteria

logger = logging.getLogger(__name__)

_current_website_id: ContextVar[Optional[int]] = ContextVar("pwb_current_website_id", default=None)

SKIP_TENANT_SCOPE = "skip_tenant_scope"


class ShardBound:
    """Marker for models stored in the website's shard database."""


class TenantScoped(ShardBound):
    """Mixin for models owned by a single website.

    Websites live in the default database while these rows may live on a
    shard, so ``website_id`` carries no foreign key.
    """

    @declared_attr
    def website_id(cls):
        return Column(Integer, nullable=False, index=True)


def set_current_website(website) -> Token:
    """Set the current tenant. Accepts a Website or a bare id."""
    website_id = getattr(website, "id", website)
    return _current_website_id.set(website_id)


def get_current_website_id() -> Optional[int]:
    return _current_website_id.get()


def clear_current_website(token: Optional[Token] = None) -> None:
    if token is not None:
        _current_website_id.reset(token)
    else:
        _current_website_id.set(None)


@contextmanager
def website_scope(website):
    """Run a block with ``website`` as the current tenant."""
    token = set_current_website(website)
    try:
        yield
    finally:
        _current_website_id.reset(token)


@contextmanager
def without_tenant():
    """Run a block with tenant scoping disabled."""
    token = _current_website_id.set(None)
    try:
        yield
    finally:
        _current_website_id.reset(token)


def for_website(db: Session, model, website_id: int):
    """Query ``model`` for an explicit website regardless of the current tenant."""
    return (
        db.query(model)
        .execution_options(**{SKIP_TENANT_SCOPE: True})
        .filter(model.website_id == website_id)
    )


@event.listens_for(Session, "do_orm_execute")
def _scope_to_current_website(execute_state: ORMExecuteState):
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.is_relationship_load
        or execute_state.execution_options.get(SKIP_TENANT_SCOPE, False)
    ):
        return

    website_id = _current_website_id.get()
    if website_id is None:
        return

    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            TenantScoped,
            lambda cls: cls.website_id == website_id,
            include_aliases=True,
        )
    )


@event.listens_for(Session, "before_flush")
def _stamp_current_website(session: Session, flush_context, instances):
    website_id = _current_website_id.get()
    if website_id is None:
        return
    for obj in session.new:
        if isinstance(obj, TenantScoped) and getattr(obj, "website_id", None) is None:
            obj.website_id = website_id
