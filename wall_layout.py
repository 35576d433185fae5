"""
Grid layout for the wall.

``reconcile`` is the single entry point the window calls whenever the
config changes. It works on an explicit ``LayoutState`` and returns a
``LayoutPlan`` describing what the host has to do:

* ``plan.rebuilt`` - throw away every tile and create one per slot of
  ``plan.grid`` (source count or column count changed, or first render)
* ``plan.loads`` - ``(index, address)`` pairs whose embedded page must be
  (re)assigned

Everything else (stretch, title) is written onto the reused ``Slot``
objects, so a weight drag never reloads a running stream.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from stream_urls import BLANK_PAGE
from wall_config import DEFAULT_TITLE, MAX_SOURCES, Config, Source, clamp_columns

# a whole row is split into this many stretch units
STRETCH_SCALE = 1000


@dataclass(eq=False)
class Slot:
    index: int
    stretch: float = 1.0
    title: str = ""
    applied_url: str = ""


@dataclass
class Grid:
    rows: List[List[Slot]]
    columns: int

    @property
    def single_row(self) -> bool:
        return len(self.rows) == 1

    @property
    def slots(self) -> List[Slot]:
        return [slot for row in self.rows for slot in row]

    def __len__(self) -> int:
        return sum(len(row) for row in self.rows)


@dataclass
class LayoutState:
    grid: Optional[Grid] = None
    columns: Optional[int] = None

    @property
    def slots(self) -> List[Slot]:
        return self.grid.slots if self.grid else []


@dataclass
class LayoutPlan:
    grid: Grid
    title: str
    rebuilt: bool = False
    loads: List[Tuple[int, str]] = field(default_factory=list)


# ---------------- Render time defaults ----------------


def effective_weight(source: Source) -> float:
    try:
        weight = float(source.weight)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(weight) or weight <= 0:
        return 1.0
    return weight


def slot_title(source: Source, index: int) -> str:
    return source.name or f"PC {index + 1}"


def target_address(source: Source) -> str:
    return source.url or BLANK_PAGE


# ---------------- Grid builder ----------------


def build_grid(sources: Sequence[Source], columns) -> Grid:
    cols = clamp_columns(columns)
    sources = list(sources)[:MAX_SOURCES]
    total = len(sources)
    row_count = max(1, math.ceil(total / cols))

    rows: List[List[Slot]] = []
    for r in range(row_count):
        start = r * cols
        rows.append([Slot(index=start + i) for i in range(len(sources[start:start + cols]))])
    return Grid(rows=rows, columns=cols)


def needs_rebuild(state: LayoutState, source_count: int, columns) -> bool:
    slots = state.slots
    return not slots or len(slots) != source_count or state.columns != clamp_columns(columns)


def row_shares(row: Sequence[Slot]) -> List[float]:
    """Fraction of the row each slot occupies (flex-grow semantics)."""
    total = sum(slot.stretch for slot in row)
    if total <= 0:
        return [1.0 / len(row)] * len(row) if row else []
    return [slot.stretch / total for slot in row]


def stretch_units(row: Sequence[Slot], scale: int = STRETCH_SCALE) -> List[int]:
    """Integer stretch factors for a box layout, bounded by ``scale``."""
    return [max(1, round(share * scale)) for share in row_shares(row)]


# ---------------- Reconciliation ----------------


def reconcile(state: LayoutState, config: Config, force: bool = False) -> LayoutPlan:
    sources = config.sources[:MAX_SOURCES]
    cols = clamp_columns(config.grid_columns)

    rebuilt = needs_rebuild(state, len(sources), cols)
    if rebuilt:
        state.grid = build_grid(sources, cols)
        state.columns = cols

    plan = LayoutPlan(grid=state.grid, title=config.app_title or DEFAULT_TITLE, rebuilt=rebuilt)
    slots = state.slots
    for idx, source in enumerate(sources):
        if idx >= len(slots):
            break
        slot = slots[idx]
        slot.stretch = effective_weight(source)
        slot.title = slot_title(source, idx)
        target = target_address(source)
        if force or slot.applied_url != target:
            slot.applied_url = target
            plan.loads.append((idx, target))
    return plan
