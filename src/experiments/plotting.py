"""Plotting helpers for solver runs."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from core.types import DescentHistory, TrajectoryInfo  # noqa: E402


def plot_descent_history(
    history: DescentHistory,
    out_path: Path,
    *,
    title: str | None = None,
    logy: bool = False,
) -> None:
    """Plot the loss of a descent run per iteration.

    Args:
        history: Recorded run.
        out_path: Output PNG path.
        title: Optional plot title.
        logy: Use a log scale on the loss axis; non-positive losses are dropped.
    """
    losses = np.asarray(history.losses, dtype=np.float64)
    x = np.arange(losses.size)
    mask = np.isfinite(losses)
    if logy:
        mask &= losses > 0
    if not np.any(mask):
        return

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.figure(figsize=(8, 4.5))
    plt.plot(x[mask], losses[mask])
    plt.xlabel("iteration")
    plt.ylabel("loss")
    if title:
        plt.title(title)
    if logy:
        plt.yscale("log")
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()


def plot_trajectory_2d(
    histories: Sequence[DescentHistory],
    out_path: Path,
    *,
    labels: Sequence[str] | None = None,
    title: str | None = None,
) -> None:
    """Plot the position paths of 2-D descent runs.

    Args:
        histories: Recorded runs; runs without positions are skipped.
        out_path: Output PNG path.
        labels: Optional legend label per run.
        title: Optional plot title.

    Raises:
        ValueError: If a label count does not match the runs or a run is not 2-D.
    """
    if labels is not None and len(labels) != len(histories):
        raise ValueError(f"Got {len(labels)} labels for {len(histories)} histories")

    out_path = Path(out_path)
    plt.figure(figsize=(6, 6))
    has_data = False
    for i, history in enumerate(histories):
        if not history.positions:
            continue
        path = np.vstack(history.positions)
        if path.shape[1] != 2:
            plt.close()
            raise ValueError(f"Expected 2-D positions, got dimension {path.shape[1]}")
        label = labels[i] if labels is not None else f"run {i}"
        plt.plot(path[:, 0], path[:, 1], marker=".", label=label)
        plt.scatter(path[-1:, 0], path[-1:, 1], marker="x")
        has_data = True

    if not has_data:
        plt.close()
        return

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.xlabel("x0")
    plt.ylabel("x1")
    plt.axis("equal")
    if title:
        plt.title(title)
    plt.legend(loc="best")
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()


def plot_outer_trace(
    trace: Sequence[TrajectoryInfo],
    out_path: Path,
    *,
    title: str | None = None,
) -> None:
    """Plot loss, mu and the largest constraint value over a constrained run.

    Args:
        trace: Snapshots collected by a constrained solver.
        out_path: Output PNG path.
        title: Optional figure title.
    """
    if not trace:
        return

    steps = np.arange(len(trace))
    loss = np.array([info.loss for info in trace], dtype=np.float64)
    mu = np.array([info.mu for info in trace], dtype=np.float64)
    max_g = np.array(
        [float(info.gx.max()) if info.gx.size else 0.0 for info in trace], dtype=np.float64
    )

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig, axes = plt.subplots(3, 1, figsize=(8, 8), sharex=True)
    for ax, values, name in zip(axes, (loss, mu, max_g), ("loss", "mu", "max g(x)")):
        mask = np.isfinite(values)
        ax.plot(steps[mask], values[mask])
        ax.set_ylabel(name)
    axes[2].axhline(0.0, color="gray", linestyle="--", linewidth=0.8)
    axes[-1].set_xlabel("trace entry")
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
