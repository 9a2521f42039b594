#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Per-entity fan-out of windowed collection.

Every tracked seller account is refreshed in its own asyncio task with its
own loading/data/error slot. A failing or slow entity never blocks or
overwrites another. Each refresh bumps a per-entity generation; completions
from a superseded generation are discarded so a stale response cannot
replace a newer one.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from ..shared.models import EntityRecordSet, EntityState, ErrorKind, FetchResult
from .collector import WindowedCollector


class DateRangeError(ValueError):
    """Raised when a requested range is unusable (e.g. start after end)"""
    pass


def validate_date_range(start: datetime, end: datetime) -> None:
    if start is None or end is None:
        raise DateRangeError("Both start and end dates are required")
    if start > end:
        raise DateRangeError("Start date cannot be after end date")


class EntityFanout:
    """
    Runs one WindowedCollector call per entity, concurrently

    Args:
        collector: Collector for one record kind (listings or payouts)
        entities: Initially tracked entities
        users_fetcher: Optional sync or async callable returning
            APIResponse[List[str]], used by discover_entities()
    """

    def __init__(self, collector: WindowedCollector, entities: Optional[Iterable[str]] = None,
                 users_fetcher: Optional[Callable[[], FetchResult]] = None):
        self.collector = collector
        self.users_fetcher = users_fetcher
        self.entities: List[str] = []
        self._states: Dict[str, EntityState] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self.logger = logging.getLogger(f"{self.__class__.__name__}[{collector.source_name}]")
        self.set_entities(entities or [])

    def set_entities(self, entities: Iterable[str]) -> None:
        """Replace the tracked entity list, keeping state for entities that remain."""
        seen = []
        for entity in entities:
            if entity and entity not in seen:
                seen.append(entity)
        self.entities = seen
        self._states = {e: self._states.get(e, EntityState()) for e in seen}

    async def discover_entities(self) -> FetchResult:
        """
        Load the tracked entities from the users endpoint

        Returns:
            FetchResult wrapping the entity list; the tracked list is only
            replaced on success
        """
        if self.users_fetcher is None:
            return FetchResult.err(ErrorKind.CONFIGURATION, "No users endpoint configured")
        if inspect.iscoroutinefunction(self.users_fetcher):
            response = await self.users_fetcher()
        else:
            response = await asyncio.to_thread(self.users_fetcher)
        if not response.success:
            self.logger.error(f"Failed to discover entities: {response.error}")
            return response
        self.set_entities(response.data)
        self.logger.info(f"Tracking {len(self.entities)} entities")
        return FetchResult.ok(list(self.entities))

    @property
    def states(self) -> Dict[str, EntityState]:
        return dict(self._states)

    def state(self, entity: str) -> EntityState:
        return self._states.setdefault(entity, EntityState())

    async def refresh_all(self, start: datetime, end: datetime) -> Dict[str, EntityState]:
        """
        Refresh every tracked entity concurrently

        Raises:
            DateRangeError: If start is after end (nothing is dispatched)

        Returns:
            Snapshot of the per-entity states once all refreshes settled
        """
        validate_date_range(start, end)
        tasks = [self._dispatch(entity, start, end) for entity in self.entities]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        return self.states

    async def refresh(self, entity: str, start: datetime, end: datetime) -> EntityState:
        """Refresh a single entity, superseding any refresh still in flight."""
        validate_date_range(start, end)
        if entity not in self.entities:
            self.entities.append(entity)
        await asyncio.gather(self._dispatch(entity, start, end), return_exceptions=True)
        return self.state(entity)

    def _dispatch(self, entity: str, start: datetime, end: datetime) -> asyncio.Task:
        previous = self._tasks.get(entity)
        if previous is not None and not previous.done():
            self.logger.info(f"Superseding in-flight refresh for {entity}")
            previous.cancel()

        state = self.state(entity)
        state.generation += 1
        state.loading = True
        task = asyncio.ensure_future(self._run(entity, start, end, state.generation))
        self._tasks[entity] = task
        return task

    async def _run(self, entity: str, start: datetime, end: datetime, generation: int) -> None:
        try:
            result = await self.collector.collect(entity, start, end)
        except asyncio.CancelledError:
            self.logger.debug(f"Refresh generation {generation} for {entity} cancelled")
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected failure collecting {entity}: {e}")
            result = FetchResult.err(ErrorKind.TRANSPORT, f"Unexpected error for {entity}: {e}")

        state = self.state(entity)
        if generation != state.generation:
            self.logger.debug(
                f"Discarding stale result for {entity} (generation {generation}, latest {state.generation})"
            )
            return

        state.loading = False
        state.updated_at = datetime.now(timezone.utc)
        if result.success:
            state.data = result.data
            state.error = None
            state.error_kind = None
        else:
            state.data = EntityRecordSet.empty(entity)
            state.error = result.error
            state.error_kind = result.error_kind
            self.logger.error(f"{self.collector.source_name} refresh failed for {entity}: {result.error}")
