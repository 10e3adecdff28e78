"""
Static diagrams: a board with annotations and nothing to click.
"""

import logging
import re
from typing import Dict, Sequence

from .base import DiagramBase, RenderState, add_mark_stones, mark_annotations, shape_map, stone_marks
from .config import get_bool, get_mapping, load_diagram_config
from .errors import ConfigError
from .parser import BoardOptions, find_board_rows, parse_board, parse_size

logger = logging.getLogger(__name__)

_AREA_PREFIX_PATTERN = re.compile(r"^[a-z]$")


def parse_area_colors(config) -> Dict[str, str]:
    """
    Read the 'area-colors' option (prefix letter -> color).

    Raises:
        ConfigError: If a prefix is not a single lowercase letter
    """
    colors: Dict[str, str] = {}
    for prefix, color in get_mapping(config, "area-colors").items():
        if not _AREA_PREFIX_PATTERN.match(prefix):
            raise ConfigError(f"Invalid area prefix '{prefix}'. Must be a single lowercase letter (a-z)")
        colors[prefix] = color.strip()
    return colors


class StaticDiagram(DiagramBase):
    """
    Render-only diagram.

    Every mark on the board is shown as an annotation (plain text unless a
    shape option lists it). Marks named by 'black' / 'white' also get a
    stone. With 'area-colors', tokens such as 'rX' or 'ba' tag their point
    with an area prefix.
    """

    diagram_type = "static"

    def __init__(self, lines: Sequence[str]):
        _, config_start = find_board_rows(lines)
        config = load_diagram_config(lines, config_start)

        self.ignore_rules = get_bool(config, "ignore-rules")
        self.area_colors = parse_area_colors(config)

        parsed = parse_board(lines, BoardOptions(
            size=parse_size(config),
            valid_prefixes=frozenset(self.area_colors),
            ignore_rules=self.ignore_rules,
        ))

        black, white = stone_marks(config, parsed)
        self.parsed = parsed.with_board(add_mark_stones(parsed, black, white, self.ignore_rules))
        self.annotations = mark_annotations(parsed, shape_map(config))

        logger.info(
            "Created static diagram (%dx%d, %d annotations)",
            parsed.row_count, parsed.column_count, len(self.annotations),
        )

    @property
    def board(self):
        return self.parsed.board

    def render_state(self) -> RenderState:
        return RenderState(
            diagram_type=self.diagram_type,
            board=self.parsed.board,
            row_count=self.parsed.row_count,
            column_count=self.parsed.column_count,
            annotations=dict(self.annotations),
            area_prefixes=dict(self.parsed.area_prefixes),
            area_colors=dict(self.area_colors),
        )
