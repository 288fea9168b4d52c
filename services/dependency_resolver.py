# -*- coding: utf-8 -*-
"""
Dependency Resolver - cascading reference lists for the wizard.

    parent category -> secondary categories
    governate       -> wilayahs
    parent category -> properties

plus the flat primary-category and governate lists. Each list is cached
per parent id; only the list of the currently selected parent is
displayed, so a late response for an earlier parent never shows up.
Failures degrade to an empty list with a per-parent error flag.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from models.reference import Category, Governate, Property, Wilayah
from services.results import DependencyError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CascadeEntry:
    """Cached state of one list, keyed by its parent id."""
    items: List[Any] = field(default_factory=list)
    loaded: bool = False
    error: Optional[DependencyError] = None


class DependencyCascade:
    """
    One parent -> children list.

    Args:
        kind: List name used in logs and DependencyError.kind
        fetcher: Blocking call returning raw dicts for a parent id
        model: Reference model with a from_dict() constructor
        flat: True for lists without a parent (fetched once)
    """

    def __init__(self, kind: str, fetcher: Callable[..., List[Dict]], model, flat: bool = False):
        self.kind = kind
        self.fetcher = fetcher
        self.model = model
        self.flat = flat
        self.selected_parent: Optional[str] = None
        self._entries: Dict[Optional[str], CascadeEntry] = {}
        self._inflight: Dict[Optional[str], asyncio.Task] = {}

    # ==================== State ====================

    @property
    def displayed(self) -> List[Any]:
        """List for the currently selected parent ([] while unresolved)."""
        key = None if self.flat else self.selected_parent
        if not self.flat and key is None:
            return []
        entry = self._entries.get(key)
        return list(entry.items) if entry else []

    def entry(self, parent_id: Optional[str] = None) -> Optional[CascadeEntry]:
        return self._entries.get(parent_id)

    def error_for(self, parent_id: Optional[str] = None) -> Optional[DependencyError]:
        entry = self._entries.get(parent_id)
        return entry.error if entry else None

    def has_error(self, parent_id: Optional[str] = None) -> bool:
        return self.error_for(parent_id) is not None

    @property
    def current_error(self) -> Optional[DependencyError]:
        return self.error_for(None if self.flat else self.selected_parent)

    def is_loading(self, parent_id: Optional[str] = None) -> bool:
        task = self._inflight.get(parent_id)
        return task is not None and not task.done()

    # ==================== Loading ====================

    async def load(self, parent_id: Optional[str] = None) -> List[Any]:
        """
        Return the list for a parent, fetching it once.

        A cached failure is returned as-is (empty); use retry() to refetch.
        Concurrent loads of the same key share one request.
        """
        entry = self._entries.get(parent_id)
        if entry is not None and entry.loaded:
            return list(entry.items)

        task = self._inflight.get(parent_id)
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch(parent_id))
            self._inflight[parent_id] = task
        try:
            return list(await task)
        finally:
            if self._inflight.get(parent_id) is task and task.done():
                del self._inflight[parent_id]

    async def retry(self, parent_id: Optional[str] = None) -> List[Any]:
        """Manual retry of a failed key; successful keys stay cached."""
        entry = self._entries.get(parent_id)
        if entry is not None and entry.error is not None:
            logger.info(f"Retrying {self.kind} for parent {parent_id}")
            del self._entries[parent_id]
        return await self.load(parent_id)

    async def select_parent(self, parent_id: Optional[str],
                            selected_children: Sequence[str] = ()) -> List[str]:
        """
        Select a new parent and return the children that survive it.

        Children absent from the new parent's list are dropped. If another
        parent was selected while this one was loading, the returned
        selection is still computed against this parent's own list; the
        displayed list follows the latest selection only.
        """
        self.selected_parent = parent_id
        if parent_id is None:
            return []
        items = await self.load(parent_id)
        valid_ids = {item.id for item in items}
        surviving = [child for child in selected_children if child in valid_ids]
        dropped = len(selected_children) - len(surviving)
        if dropped:
            logger.debug(f"{self.kind}: dropped {dropped} selection(s) not under {parent_id}")
        return surviving

    def is_current(self, parent_id: Optional[str]) -> bool:
        return self.selected_parent == parent_id

    async def _fetch(self, parent_id: Optional[str]) -> List[Any]:
        try:
            if self.flat:
                raw = await asyncio.to_thread(self.fetcher)
            else:
                raw = await asyncio.to_thread(self.fetcher, parent_id)
            items = [self.model.from_dict(row) for row in (raw or [])]
        except Exception as e:
            logger.error(f"Failed to load {self.kind} for parent {parent_id}: {e}")
            self._entries[parent_id] = CascadeEntry(
                items=[],
                loaded=True,
                error=DependencyError(
                    message=f"Failed to load {self.kind}",
                    kind=self.kind,
                    parent_id=parent_id
                )
            )
            return []

        self._entries[parent_id] = CascadeEntry(items=items, loaded=True)
        if not self.flat and not self.is_current(parent_id):
            logger.debug(f"{self.kind}: stored late response for parent {parent_id}")
        return items


class DependencyResolver:
    """All reference lists the wizard depends on, backed by one API client."""

    def __init__(self, api_client):
        self.api = api_client

        self.primary_categories = DependencyCascade(
            "primary_categories", api_client.get_primary_categories, Category, flat=True
        )
        self.governates = DependencyCascade(
            "governates", api_client.get_governates, Governate, flat=True
        )
        self.categories = DependencyCascade(
            "categories", api_client.get_secondary_categories, Category
        )
        self.wilayahs = DependencyCascade(
            "wilayahs", api_client.get_wilayahs, Wilayah
        )
        self.properties = DependencyCascade(
            "properties", api_client.get_properties_by_category, Property
        )

    @property
    def cascades(self) -> List[DependencyCascade]:
        return [
            self.primary_categories, self.governates,
            self.categories, self.wilayahs, self.properties,
        ]

    def get(self, kind: str) -> DependencyCascade:
        for cascade in self.cascades:
            if cascade.kind == kind:
                return cascade
        raise KeyError(kind)

    async def load_roots(self):
        """Fetch the flat lists concurrently."""
        await asyncio.gather(self.primary_categories.load(), self.governates.load())

    def current_errors(self) -> List[DependencyError]:
        """Error flags of the lists currently on display."""
        return [c.current_error for c in self.cascades if c.current_error is not None]
