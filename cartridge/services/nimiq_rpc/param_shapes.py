"""
Parameter shapes for getBlockByNumber.

Nodes accept either positional or named params, and the named field
names vary. The client tries each builder in order until a reply decodes.
"""

from collections.abc import Callable
from typing import Any

ParamBuilder = Callable[[int, bool], list | dict[str, Any]]

BLOCK_PARAM_SHAPES: tuple[tuple[str, ParamBuilder], ...] = (
    ("positional", lambda height, include: [height, include]),
    (
        "blockNumber+includeBody",
        lambda height, include: {"blockNumber": height, "includeBody": include},
    ),
    (
        "number+includeBody",
        lambda height, include: {"number": height, "includeBody": include},
    ),
    ("blockNumber", lambda height, include: {"blockNumber": height}),
    ("number", lambda height, include: {"number": height}),
)
