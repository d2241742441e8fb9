"""Solver configuration loading.

A solver spec is a JSON object:

    {
        "class": "optim.gradient_descent:GradientDescent",
        "hyperparams": {"max_iterations": 500},
        "inner_hyperparams": {"step_decr": 0.7},
        "params": {"seed": 3}
    }

``params`` go to the constructor after the backend, ``hyperparams`` update
the solver's default table and ``inner_hyperparams`` update the inner
GradientDescent table of the constrained solvers.
"""

from __future__ import annotations

import importlib
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from core.logging import get_logger
from core.protocols import NumericBackend
from optim.hyperparams import Hyperparams

__all__ = [
    "load_json",
    "import_class",
    "apply_overrides",
    "hyperparams_from_config",
    "build_solver",
    "load_solver",
]

logger = get_logger(__name__)


def load_json(path: Path) -> dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def import_class(path: str) -> type[Any]:
    """Import ``module:Class`` or ``module.Class``."""
    if ":" in path:
        module_name, class_name = path.split(":", 1)
    else:
        module_name, class_name = path.rsplit(".", 1)
    module = importlib.import_module(module_name)
    return getattr(module, class_name)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def apply_overrides(config: dict[str, Any], overrides: Iterable[str]) -> dict[str, Any]:
    """Return a deep copy of ``config`` with dotted ``key=value`` overrides applied.

    Values are parsed as JSON and fall back to the raw string.

    Example:
        >>> apply_overrides({"hyperparams": {}}, ["hyperparams.max_iterations=5"])
        {'hyperparams': {'max_iterations': 5}}
    """
    result = json.loads(json.dumps(config))
    for item in overrides:
        if "=" not in item:
            raise ValueError(f"Override must be key=value, got: {item}")
        path, raw_val = item.split("=", 1)
        keys = path.split(".")
        target = result
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]
        target[keys[-1]] = _parse_value(raw_val)
    return result


def hyperparams_from_config(
    config: Mapping[str, Any] | None,
    defaults: Mapping[str, Any] | None = None,
) -> Hyperparams:
    """Create a Hyperparams store from ``defaults`` updated with ``config``."""
    hp = Hyperparams(defaults)
    if config:
        hp.update(config)
    return hp


def build_solver(spec: Mapping[str, Any], backend: NumericBackend) -> Any:
    """Instantiate a solver from a spec dict.

    Raises:
        ValueError: If the spec has no ``class`` entry.
    """
    if "class" not in spec:
        raise ValueError(f"Solver spec must name a class, got keys {sorted(spec)}")
    cls = import_class(spec["class"])
    solver = cls(backend, **dict(spec.get("params", {})))

    hyperparams = spec.get("hyperparams")
    if hyperparams:
        solver.hyperparams = hyperparams_from_config(hyperparams, solver.hyperparams.as_dict())
    inner = spec.get("inner_hyperparams")
    if inner:
        if not hasattr(solver, "inner_hyperparams"):
            raise ValueError(f"{cls.__name__} has no inner solver to configure")
        solver.inner_hyperparams = hyperparams_from_config(
            inner, solver.inner_hyperparams.as_dict()
        )

    logger.debug("Built %s with %r", cls.__name__, solver.hyperparams)
    return solver


def load_solver(
    path: Path,
    backend: NumericBackend,
    overrides: Iterable[str] = (),
) -> Any:
    """Load a solver spec from a JSON file, apply overrides and build it."""
    spec = apply_overrides(load_json(path), overrides)
    return build_solver(spec, backend)
