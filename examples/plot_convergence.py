"""Plot the residual force per step and the label trajectories of a layout run."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
for candidate in (SRC_ROOT, REPO_ROOT / "examples"):
    candidate_str = str(candidate)
    if candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)

from force_labels import run_layout  # noqa: E402
from product_demo import build_labels  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--demo", choices=["product", "multi", "grid"], default="multi")
    parser.add_argument("--max-steps", type=int, default=300)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--output", type=Path, default=Path(__file__).with_name("convergence.png"))
    args = parser.parse_args()

    labels = build_labels(args.demo)
    frames: list[np.ndarray] = []
    result = run_layout(
        labels,
        max_steps=args.max_steps,
        seed=args.seed,
        on_step=lambda _, snapshot: frames.append(np.array([label.position for label in snapshot])),
    )

    fig, (ax_force, ax_paths) = plt.subplots(1, 2, figsize=(12, 5))
    ax_force.semilogy(np.arange(1, len(result.force_history) + 1), np.maximum(result.force_history, 1e-6))
    ax_force.axhline(result.config.threshold, color="tab:red", linestyle="--", label="threshold")
    ax_force.set_xlabel("step")
    ax_force.set_ylabel("max residual force")
    ax_force.legend()

    if frames:
        trajectory = np.stack(frames)  # (steps, labels, 2)
        for index, label in enumerate(result.labels):
            ax_paths.plot(trajectory[:, index, 0], trajectory[:, index, 1], linewidth=1)
            ax_paths.scatter([label.anchor.x], [label.anchor.y], marker="x", color="black", s=20)
            ax_paths.annotate(label.id, label.position, fontsize=8)
    ax_paths.set_aspect("equal")
    ax_paths.invert_yaxis()
    ax_paths.set_title(f"converged={result.converged} after {result.steps} steps")

    fig.tight_layout()
    fig.savefig(args.output, dpi=120)
    print(f"Saved plot to {args.output}")


if __name__ == "__main__":
    main()
