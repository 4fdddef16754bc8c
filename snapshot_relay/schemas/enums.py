"""
Canonical enums and fixed sets for snapshot artifacts.
"""

from enum import Enum
from typing import FrozenSet, Tuple


class ArtifactRole(str, Enum):
    """The three required files of a snapshot execution.

    Values are the remote file aliases.
    """

    SNAPSHOT = "snapshot"  # interactive data (JSON)
    IMAGE_SMALL = "image-small"  # thumbnail image
    IMAGE_LARGE = "image-large"  # preview image


# Fixed fetch order within one transaction
REQUIRED_ROLES: Tuple[ArtifactRole, ...] = (
    ArtifactRole.SNAPSHOT,
    ArtifactRole.IMAGE_SMALL,
    ArtifactRole.IMAGE_LARGE,
)


class DisplayMode(str, Enum):
    """How the front-end renders a snapshot."""

    SNAPSHOT = "snapshot"
    IMAGE = "image"


# Visualization types the front-end can render interactively
SUPPORTED_VISUALIZATIONS: FrozenSet[str] = frozenset(
    {
        "barchart",
        "piechart",
        "linechart",
        "mekkochart",
        "qlik-funnel-chart-ext",
        "qlik-sankey-chart-ext",
        "kpi",
        "bulletchart",
        "sn-org-chart",
        "combochart",
        "scatterplot",
        "histogram",
        "waterfallchart",
        "gauge",
        "childObject",
    }
)

UNKNOWN_VISUALIZATION = "unknown"


def resolve_display_mode(visualization: str) -> DisplayMode:
    """Interactive rendering for supported chart types, static image otherwise."""
    if visualization in SUPPORTED_VISUALIZATIONS:
        return DisplayMode.SNAPSHOT
    return DisplayMode.IMAGE
