# File: civic_issues/db/base.py
# Project: civic-issues-backend

from sqlalchemy import Boolean, event
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, with_loader_criteria


class Base(DeclarativeBase):
    pass


class SoftDeleteMixin:
    """Rows are hidden by flipping ``is_deleted``; nothing is removed."""
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", index=True)


@event.listens_for(Session, "do_orm_execute")
def _hide_soft_deleted(execute_state):
    # Every ORM select skips deleted rows unless the statement opts in with
    # .execution_options(include_deleted=True). Relationship loads are left
    # alone so a report still resolves its (possibly deleted) department.
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
                propagate_to_loaders=False,
            )
        )
