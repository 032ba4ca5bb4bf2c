"""Import every tool module so the shared registry is fully populated."""
from typing import Optional

from compute_tools.composition.delegate import Delegate
from compute_tools.tools import (  # noqa: F401  (imported for registration side effects)
    basic_math,
    category,
    crypto,
    encoding,
    geospatial,
    math3d,
    stats,
    strings,
)
from compute_tools.tools.base import ToolRegistry, registry


def default_registry(delegate: Optional[Delegate] = None) -> ToolRegistry:
    """
    Return the registry holding every tool.

    :param Delegate delegate: Delegate for composite tools; in-process when None

    :return: Populated registry
    :rtype: ToolRegistry
    """
    if delegate is None:
        return registry
    return registry.with_delegate(delegate)
