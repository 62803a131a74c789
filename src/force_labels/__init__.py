"""force_labels package."""

from .anchors import Anchor, anchor_centroid, generate_anchor_grid, generate_anchor_ring
from .api import LayoutResult, export_layout, overlap_matrix, run_layout, total_overlap_area
from .config import ForceConfig, load_config
from .core import ForceSimulation, Label, PositionedLabel
from .rendering import LabelStyle, estimate_label_size, label_at, render_labels, with_estimated_sizes

__all__ = [
	"Anchor",
	"anchor_centroid",
	"generate_anchor_grid",
	"generate_anchor_ring",
	"ForceConfig",
	"load_config",
	"Label",
	"PositionedLabel",
	"ForceSimulation",
	"LayoutResult",
	"run_layout",
	"overlap_matrix",
	"total_overlap_area",
	"export_layout",
	"LabelStyle",
	"estimate_label_size",
	"with_estimated_sizes",
	"label_at",
	"render_labels",
]
__version__ = "0.1.0"
