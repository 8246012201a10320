# core/handle.py
from __future__ import annotations
import logging
from typing import Any, Callable, Optional

from app.errors import EngineInitFailure, HandleReleased

log = logging.getLogger(__name__)


class EngineHandle:
    """
    Owns at most one engine instance.

    Replacing releases the old engine before the new one is installed. Every
    engine is disposed exactly once and nothing is used after release. An
    optional `retire` hook may take over disposal of an engine that is still
    busy on another thread.
    """

    def __init__(
        self,
        factory: Callable[[], Any],
        retire: Optional[Callable[[Any, Callable[[Any], None]], bool]] = None,
    ):
        self._factory = factory
        self._retire = retire
        self._engine: Optional[Any] = None
        self._acquired = 0

    @property
    def attached(self) -> bool:
        return self._engine is not None

    @property
    def current(self) -> Any:
        if self._engine is None:
            raise HandleReleased("no engine attached")
        return self._engine

    @property
    def acquired_count(self) -> int:
        return self._acquired

    def acquire(self) -> Any:
        """Release any current engine, then construct and install a fresh one."""
        self.release()
        try:
            engine = self._factory()
        except Exception as e:
            log.error("Engine construction failed: %s", e)
            raise EngineInitFailure(str(e)) from e
        self._engine = engine
        self._acquired += 1
        log.info("Engine #%d acquired", self._acquired)
        return engine

    replace = acquire

    def release(self):
        engine, self._engine = self._engine, None
        if engine is None:
            return
        if self._retire is not None and self._retire(engine, self._dispose):
            return
        self._dispose(engine)

    @staticmethod
    def _dispose(engine: Any):
        try:
            engine.dispose()
        except Exception:
            # the instance is gone either way; never dispose it a second time
            log.exception("Engine dispose failed")
        else:
            log.info("Engine released")
