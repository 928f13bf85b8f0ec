"""
Experiment routing for storefront blocks

Variant assignment is not implemented yet: every visitor gets the first
variant, which is the control for all experiments defined so far.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from minimall.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_VARIANT = "default"


@dataclass
class ExperimentContext:
    key: str
    variant: str
    config_id: str = "default-config"
    session_id: str = "anonymous"
    device: str = "desktop"
    metadata: Dict[str, Any] = field(default_factory=dict)


def route_experiment(
    experiment_key: str,
    variants: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> ExperimentContext:
    variants = variants or [DEFAULT_VARIANT]
    return ExperimentContext(
        key=experiment_key,
        variant=variants[0] or DEFAULT_VARIANT,
        metadata=context or {},
    )


def get_experiment_variant(experiment_key: str, default_variant: str = DEFAULT_VARIANT) -> str:
    return default_variant


def track_experiment_exposure(
    experiment_key: str, variant: str, metadata: Optional[Dict[str, Any]] = None
) -> None:
    logger.debug(f"[Experiment] {experiment_key}: {variant}", **(metadata or {}))
