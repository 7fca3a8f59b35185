"""Render result rows as JSON, YAML or a plain-text table."""

from __future__ import annotations

import io
import json
import logging
from enum import Enum
from typing import Protocol, Sequence, runtime_checkable

import yaml
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .errors import RenderError

LOG = logging.getLogger(__name__)

DEFAULT_TABLE_WIDTH = 200


class OutputFormat(str, Enum):
    """Output formats accepted by ``--output``."""

    JSON = "json"
    TABLE = "table"
    YAML = "yaml"

    def __str__(self) -> str:
        return self.value


@runtime_checkable
class Row(Protocol):
    """Capabilities every result row provides to the renderer."""

    @classmethod
    def headers(cls) -> tuple[str, ...]: ...

    def cells(self) -> tuple[str, ...]: ...

    def to_dict(self) -> dict[str, object]: ...


def render(
    rows: Sequence[Row],
    output: OutputFormat | str,
    *,
    row_type: type[Row] | None = None,
    width: int | None = None,
) -> str:
    """Serialize `rows` in the requested format.

    JSON and YAML carry every field at full length. The table uses the row
    type's headers and each row's display cells, so it may shorten long text.
    `row_type` supplies headers when `rows` is empty.
    """

    fmt = OutputFormat(output)
    LOG.debug("Rendering %d row(s) as %s", len(rows), fmt.value)
    if fmt is OutputFormat.JSON:
        return _render_json(rows)
    if fmt is OutputFormat.YAML:
        return _render_yaml(rows)
    return _render_table(rows, row_type=row_type, width=width)


def _render_json(rows: Sequence[Row]) -> str:
    try:
        return json.dumps([row.to_dict() for row in rows])
    except (TypeError, ValueError) as exc:
        raise RenderError(f"Could not encode rows as JSON: {exc}") from exc


def _render_yaml(rows: Sequence[Row]) -> str:
    try:
        document = yaml.safe_dump(
            [row.to_dict() for row in rows],
            sort_keys=False,
            allow_unicode=True,
        )
    except yaml.YAMLError as exc:
        raise RenderError(f"Could not encode rows as YAML: {exc}") from exc
    return document.rstrip("\n")


def _render_table(
    rows: Sequence[Row],
    *,
    row_type: type[Row] | None,
    width: int | None,
) -> str:
    if row_type is None and rows:
        row_type = type(rows[0])
    headers = row_type.headers() if row_type is not None else ()
    table = Table(box=box.ASCII, show_lines=False)
    for header in headers:
        table.add_column(header, overflow="fold")
    for row in rows:
        cells = row.cells()
        if len(cells) != len(headers):
            raise RenderError(f"{type(row).__name__} produced {len(cells)} cells for {len(headers)} columns")
        # Text() keeps square brackets in SQL from being read as markup.
        table.add_row(*(Text(cell) for cell in cells))
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=width or DEFAULT_TABLE_WIDTH,
        color_system=None,
        force_terminal=False,
        highlight=False,
    )
    console.print(table)
    return buffer.getvalue().rstrip("\n")


__all__ = ["OutputFormat", "Row", "render"]
