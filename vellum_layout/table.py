from __future__ import annotations

import logging
from typing import Sequence, TypeAlias

from vellum_core.boxes import AbsoluteBox, UnitBox
from vellum_core.measure import Measure, MeasureOrNumber, h, mm, w
from vellum_core.nodes import Context, Node, compose, context, ctxpromise, minheight, minwidth


LOGGER = logging.getLogger(__name__)

Cell: TypeAlias = Node | Sequence[Node] | None


def solve_extents(total: float, proportions: Sequence[float], minimums: Sequence[float], label: str = "cell") -> list[float]:
    """Split `total` by `proportions` without going below any minimum.

    Cells whose proportional share is under their minimum are pinned to it
    and the rest is shared out again. When the minimums alone exceed the
    total, every cell gets its minimum and the table overflows.
    """

    needed = sum(minimums)
    if needed > total + 1e-9:
        LOGGER.warning(
            "table %ss need %.2fmm but only %.2fmm is available; using minimum sizes", label, needed, total
        )
        return list(minimums)

    pinned: dict[int, float] = {}
    while True:
        free = [i for i in range(len(proportions)) if i not in pinned]
        remaining = total - sum(pinned.values())
        weight = sum(proportions[i] for i in free)
        shares = {i: remaining * proportions[i] / weight for i in free}
        short = [i for i in free if shares[i] < minimums[i]]
        if not short:
            return [pinned[i] if i in pinned else shares[i] for i in range(len(proportions))]
        for i in short:
            pinned[i] = minimums[i]


def table(
    cells: Sequence[Sequence[Cell]],
    *,
    x_prop: Sequence[float] | None = None,
    y_prop: Sequence[float] | None = None,
    x0: MeasureOrNumber = 0.0,
    y0: MeasureOrNumber = 0.0,
    width: MeasureOrNumber = w,
    height: MeasureOrNumber = h,
    order: int = 0,
    clip: bool = False,
) -> Context:
    """Grid of cells whose column widths and row heights are solved at render time.

    A cell holds a node, a sequence of nodes drawn on top of each other, or
    `None`. Column and row minimums come from the cells' `minwidth` and
    `minheight`.
    """

    grid = [list(row) for row in cells]
    if not grid or not grid[0]:
        raise ValueError("a table needs at least one row and one column")
    ncols = len(grid[0])
    if any(len(row) != ncols for row in grid):
        raise ValueError("table rows must all have the same number of cells")
    nrows = len(grid)

    col_props = _proportions(x_prop, ncols, "x_prop")
    row_props = _proportions(y_prop, nrows, "y_prop")
    col_min = [max(_min_extent(row[j], minwidth) for row in grid) for j in range(ncols)]
    row_min = [max(_min_extent(cell, minheight) for cell in row) for row in grid]

    def build(box: AbsoluteBox, units: UnitBox) -> Node:
        widths = solve_extents(box.width, col_props, col_min, "column")
        heights = solve_extents(box.height, row_props, row_min, "row")
        placed = []
        y = 0.0
        for i, row in enumerate(grid):
            x = 0.0
            for j, cell in enumerate(row):
                nodes = _cell_nodes(cell)
                if nodes:
                    placed.append(compose(context(x * mm, y * mm, widths[j] * mm, heights[i] * mm), *nodes))
                x += widths[j]
            y += heights[i]
        LOGGER.debug("laid out %dx%d table in %.2fx%.2fmm", nrows, ncols, box.width, box.height)
        return compose(Context(), *placed)

    # Explicit origin-free units keep the solved millimetre offsets exact.
    parent = context(
        x0,
        y0,
        width,
        height,
        units=UnitBox(),
        minwidth=sum(col_min) * mm if any(col_min) else None,
        minheight=sum(row_min) * mm if any(row_min) else None,
        order=order,
        clip=clip,
    )
    return compose(parent, ctxpromise(build))


def hstack(*nodes: Cell, x_prop: Sequence[float] | None = None, **kwargs) -> Context:
    if not nodes:
        return context()
    return table([list(nodes)], x_prop=x_prop, **kwargs)


def vstack(*nodes: Cell, y_prop: Sequence[float] | None = None, **kwargs) -> Context:
    if not nodes:
        return context()
    return table([[node] for node in nodes], y_prop=y_prop, **kwargs)


def gridstack(rows: Sequence[Sequence[Cell]], **kwargs) -> Context:
    return table(rows, **kwargs)


def _proportions(values: Sequence[float] | None, count: int, label: str) -> list[float]:
    if values is None:
        return [1.0] * count
    props = [float(v) for v in values]
    if len(props) != count:
        raise ValueError(f"{label} has {len(props)} entries for {count} cells")
    if any(p <= 0 for p in props):
        raise ValueError(f"{label} entries must be > 0")
    return props


def _cell_nodes(cell: Cell) -> list[Node]:
    if cell is None:
        return []
    if isinstance(cell, (list, tuple)):
        return list(cell)
    return [cell]


def _min_extent(cell: Cell, getter) -> float:
    best = 0.0
    for node in _cell_nodes(cell):
        value: Measure | None = getter(node)
        if value is not None:
            best = max(best, value.abs)
    return best
