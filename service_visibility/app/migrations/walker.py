"""
Tree walker for nested content items.

Content trees are lists of nodes shaped like
``{"elType": ..., "settings": {...}, "elements": [child, ...]}``.
Walking never mutates the input: every visited node is a fresh copy and
the returned tree shares no mutable containers with the original.
"""

import copy
from typing import Any

from shared.errors import TreeDepthError
from .models import ContentNode, NodeTransform


CHILDREN_KEY = "elements"
DEFAULT_MAX_DEPTH = 256


def walk_tree(node: Any, visit: NodeTransform, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Return a rewritten copy of ``node`` and all of its descendants.

    ``visit`` receives a private copy of each node without its children
    and returns the rewritten node. Children are walked after their
    parent. Anything that is not a dict is copied through untouched.

    Raises TreeDepthError when nesting exceeds ``max_depth``.
    """
    return _walk(node, visit, max_depth, 0)


def _walk(node: Any, visit: NodeTransform, max_depth: int, depth: int) -> Any:
    if depth > max_depth:
        raise TreeDepthError(max_depth, {"depth": depth})

    if not isinstance(node, dict):
        return copy.deepcopy(node)

    own = {key: copy.deepcopy(value) for key, value in node.items() if key != CHILDREN_KEY}
    rewritten: ContentNode = visit(own)

    if CHILDREN_KEY in node:
        children = node[CHILDREN_KEY]
        if isinstance(children, list):
            rewritten[CHILDREN_KEY] = [_walk(child, visit, max_depth, depth + 1) for child in children]
        else:
            rewritten[CHILDREN_KEY] = copy.deepcopy(children)

    return rewritten
