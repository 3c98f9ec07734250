"""Immediate-vs-debounced emission of filter state changes.

In **local** mode every change is emitted at once.  In **remote** mode
changes are debounced: each :meth:`DispatchScheduler.schedule` call
supersedes the previous one and restarts the quiet period, so only the
filter state present when the period elapses without another change is
emitted.

Supersession is tracked with a monotonically increasing *generation*.
Anything holding an older generation (a sleeping delivery, an in-flight
fetch) checks :meth:`DispatchScheduler.is_current` before applying its
result and drops it otherwise.

Typical usage from an async task::

    dispatch = scheduler.schedule(store.get_active_filters())
    delivered = await scheduler.deliver(dispatch, fetch_rows)
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from reflex_filter_grid.models import FilterValue

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD: float = 0.3


@dataclass(frozen=True)
class Dispatch:
    """One scheduled emission of a filter snapshot."""

    generation: int
    filters: dict[str, FilterValue] = field(default_factory=dict)
    delay: float = 0.0
    local: bool = False


class DispatchScheduler:
    """Decides when a filter state change reaches its consumer.

    Args:
        quiet_period: Debounce interval in seconds for remote mode.
        local: Start in local (immediate) mode.
    """

    def __init__(self, quiet_period: float = DEFAULT_QUIET_PERIOD, local: bool = False) -> None:
        if quiet_period < 0:
            raise ValueError("quiet_period must be >= 0")
        self.quiet_period = quiet_period
        self._local = local
        self._generation = 0
        self._closed = False

    @property
    def local(self) -> bool:
        return self._local

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def set_local(self, local: bool) -> None:
        """Switch emission mode for *future* changes.

        A pending debounced dispatch is cancelled, never replayed.
        """
        if local == self._local:
            return
        self._local = local
        self.cancel()
        logger.debug("dispatch mode -> %s", "local" if local else "remote")

    def schedule(self, filters: Mapping[str, FilterValue]) -> Dispatch:
        """Register a new filter snapshot, superseding any pending one."""
        self._generation += 1
        delay = 0.0 if self._local else self.quiet_period
        dispatch = Dispatch(
            generation=self._generation,
            filters=dict(filters),
            delay=delay,
            local=self._local,
        )
        logger.debug(
            "scheduled dispatch gen=%d delay=%.3fs keys=%s",
            dispatch.generation,
            delay,
            sorted(dispatch.filters),
        )
        return dispatch

    def is_current(self, generation: int) -> bool:
        """True while *generation* is the latest and the scheduler is open."""
        return not self._closed and generation == self._generation

    def cancel(self) -> None:
        """Invalidate whatever is pending or in flight."""
        self._generation += 1

    def close(self) -> None:
        """Cancel pending work and refuse all further deliveries (grid unmounted)."""
        self.cancel()
        self._closed = True

    async def deliver(
        self,
        dispatch: Dispatch,
        emit: Callable[[dict[str, FilterValue]], Awaitable[Any] | Any],
    ) -> bool:
        """Wait out the dispatch delay, then call *emit* if still current.

        Returns:
            True when *emit* was called, False when the dispatch was
            superseded, cancelled, or the scheduler closed meanwhile.
        """
        if dispatch.delay > 0:
            await asyncio.sleep(dispatch.delay)
        if not self.is_current(dispatch.generation):
            logger.debug("dispatch gen=%d superseded before emission", dispatch.generation)
            return False
        result = emit(dispatch.filters)
        if inspect.isawaitable(result):
            await result
        return True
