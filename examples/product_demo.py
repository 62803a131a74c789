"""Lay out the product-annotation, anchor-ring and anchor-grid demos and export previews."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

# Allow running the script from the repo without installing the package first.
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from force_labels import Label, export_layout, generate_anchor_grid, generate_anchor_ring, load_config  # noqa: E402

DEFAULT_OUTPUT = Path(__file__).with_name("output")


def product_labels() -> list[Label]:
    return [
        Label(id="price", anchor=(300.0, 200.0), content="€ 59,99", priority=2.0),
        Label(id="name", anchor=(150.0, 220.0), content="O'NEAL Flow Jersey", priority=3.0),
        Label(id="feature1", anchor=(300.0, 300.0), content="Quick Dry"),
        Label(id="feature2", anchor=(350.0, 340.0), content="4 Colors Avail."),
    ]


def ring_labels(count: int = 8) -> list[Label]:
    anchors = generate_anchor_ring((300.0, 300.0), 100.0, count)
    return [Label(id=f"label-{i}", anchor=anchor, content=f"Label {i + 1}") for i, anchor in enumerate(anchors)]


def grid_labels(canvas_size: tuple[int, int] = (600, 600), grid_dims: tuple[int, int] = (4, 3)) -> list[Label]:
    anchors = generate_anchor_grid(
        canvas_size=(float(canvas_size[0]), float(canvas_size[1])),
        grid_dims=grid_dims,
        margin=(canvas_size[0] * 0.15, canvas_size[1] * 0.15),
    )
    return [Label(id=f"cell-{i}", anchor=anchor, content=f"Cell {i + 1}") for i, anchor in enumerate(anchors)]


def build_labels(demo: str, canvas_size: tuple[int, int] = (600, 600)) -> list[Label]:
    if demo == "product":
        return product_labels()
    if demo == "grid":
        return grid_labels(canvas_size)
    return ring_labels()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--demo", choices=["product", "multi", "grid"], default="product")
    parser.add_argument("--output-root", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument("--config", type=Path, default=None, help="JSON file with force settings")
    parser.add_argument("--max-steps", type=int, default=500)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--canvas", type=int, nargs=2, default=(600, 600), metavar=("W", "H"))
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    labels = build_labels(args.demo, tuple(args.canvas))
    config = load_config(args.config) if args.config else None
    summary = export_layout(
        args.demo,
        labels,
        canvas_size=tuple(args.canvas),
        output_root=args.output_root,
        config=config,
        max_steps=args.max_steps,
        seed=args.seed,
    )

    print(f"Converged: {summary['converged']} after {summary['steps']} steps")
    for item in summary["labels"]:
        pos = item["position"]
        print(f"  {item['id']}: ({pos['x']:.1f}, {pos['y']:.1f})")
    print(f"Preview: {summary['preview_path']}")


if __name__ == "__main__":
    main()
