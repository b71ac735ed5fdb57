# The MIT License (MIT)
# Copyright © 2025 Entrius

"""Reusable Rich table presets."""

from dataclasses import dataclass
from typing import Dict, List

from rich import box
from rich.table import Table

from repofleet.classes import Item, ItemKind
from repofleet.errors import PerRepositoryError


@dataclass(frozen=True)
class TableTheme:
    box_style: box.Box
    header_style: str
    border_style: str
    show_lines: bool
    pad_edge: bool


TABLE_THEMES = {
    # Full wrapped grid
    'square': TableTheme(
        box_style=box.SQUARE,
        header_style='bold magenta',
        border_style='grey35',
        show_lines=True,
        pad_edge=True,
    ),

    # Minimal separators with a heavier header rule
    'minimal': TableTheme(
        box_style=box.MINIMAL_HEAVY_HEAD,
        header_style='bold white',
        border_style='grey50',
        show_lines=False,
        pad_edge=False,
    ),
}

DEFAULT_TABLE_THEME = 'minimal'


def build_table(theme: str = DEFAULT_TABLE_THEME, **kwargs) -> Table:
    """Create a Rich table using a named visual theme."""
    preset = TABLE_THEMES.get(theme, TABLE_THEMES[DEFAULT_TABLE_THEME])
    params = {
        'box': preset.box_style,
        'header_style': preset.header_style,
        'border_style': preset.border_style,
        'show_lines': preset.show_lines,
        'pad_edge': preset.pad_edge,
    }
    params.update(kwargs)
    return Table(**params)


def build_items_table(items: List[Item], title: str = '') -> Table:
    """Build a Rich table of processed pull requests or issues: URL first so it can be copied."""
    table = build_table(title=title or None, show_header=True)
    table.add_column('URL', style='blue', no_wrap=True)
    table.add_column('Title', style='green', max_width=60)
    table.add_column('Author', style='yellow')

    show_branch = any(item.kind is ItemKind.PULL_REQUEST for item in items)
    if show_branch:
        table.add_column('Branch', style='cyan')

    for item in items:
        row = [item.url, item.title or 'Untitled', item.author or 'N/A']
        if show_branch:
            row.append(getattr(item, 'head_ref', '') or '')
        table.add_row(*row)

    return table


def build_repo_errors_table(errors: Dict[str, PerRepositoryError]) -> Table:
    """Build a Rich table of repositories whose scan failed."""
    table = build_table(theme='square', title='Repositories that could not be scanned', show_header=True)
    table.add_column('Repository', style='cyan')
    table.add_column('Error', style='red', max_width=80)

    for key in sorted(errors):
        table.add_row(key, str(errors[key].cause))

    return table
