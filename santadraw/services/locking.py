from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import select

from ..errors import Conflict, NotFound
from ..extensions import db
from ..models import Draw, Participant


logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 10.0


class DrawLock:
    """Process-local mutex for one draw; dropped once nobody references it."""

    __slots__ = ("draw_id", "lock", "__weakref__")

    def __init__(self, draw_id: int):
        self.draw_id = draw_id
        self.lock = threading.Lock()


_registry_guard = threading.Lock()
_registry: weakref.WeakValueDictionary[int, DrawLock] = weakref.WeakValueDictionary()


def lock_for_draw(draw_id: int) -> DrawLock:
    with _registry_guard:
        entry = _registry.get(draw_id)
        if entry is None:
            entry = DrawLock(draw_id)
            _registry[draw_id] = entry
        return entry


@contextmanager
def draw_transaction(draw_id: int, timeout: float | None = None) -> Iterator[Draw]:
    """
    Run a read-modify-write sequence on one draw atomically.

    Holds the draw's process lock, discards whatever the session had open
    (uncommitted changes included), re-reads the draw and its participants
    with SELECT ... FOR UPDATE (a no-op on SQLite, row locks elsewhere), then
    commits when the block finishes or rolls everything back when it raises.
    Other draws are never blocked.
    """
    if timeout is None:
        timeout = float(current_app.config.get("DRAW_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT))

    entry = lock_for_draw(draw_id)
    if not entry.lock.acquire(timeout=timeout):
        logger.warning("Timed out after %.2fs waiting for the lock on draw %s", timeout, draw_id)
        raise Conflict()

    try:
        # End any read transaction opened before the lock was held, so that
        # REPEATABLE READ backends take a fresh snapshot below.
        db.session.rollback()
        draw = db.session.execute(
            select(Draw)
            .where(Draw.id == draw_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if draw is None:
            raise NotFound()
        # row locks on the participants too; the collection loads from this snapshot
        db.session.execute(
            select(Participant)
            .where(Participant.draw_id == draw_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()

        try:
            yield draw
            db.session.commit()
        except BaseException:
            db.session.rollback()
            raise
    finally:
        entry.lock.release()
