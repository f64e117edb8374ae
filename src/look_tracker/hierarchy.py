"""Resolve which tracked key a scene object reports its look time under."""

from __future__ import annotations

import logging
from typing import Optional

from .config import DEFAULT_ROOT_NAME
from .scene import SceneNode

logger = logging.getLogger(__name__)

CATEGORY_TAG = "category"
PRODUCT_TAG = "product"


def resolve_object_key(
    node: SceneNode, root_name: str = DEFAULT_ROOT_NAME
) -> Optional[str]:
    """Return the tracked key for ``node`` or ``None`` for an invalid hierarchy.

    Rules are tried in order:

    1. the object is tagged as a category: its own name;
    2. its parent is tagged as a product: the first category-tagged child of
       that parent;
    3. the nearest category-tagged ancestor, or the object's own name once an
       ancestor named ``root_name`` is reached;
    4. an untagged ``root_name -> genre -> object`` layout reports the
       genre's name; for a fully untagged chain this is checked before the
       ancestor walk of rule 3.
    """
    if node.has_tag(CATEGORY_TAG):
        logger.debug("Object %s is a product category", node.name)
        return node.name

    parent = node.parent
    if parent is not None and parent.has_tag(PRODUCT_TAG):
        for sibling in parent.children:
            if sibling.has_tag(CATEGORY_TAG):
                logger.debug(
                    "Found category sibling %s for product %s", sibling.name, node.name
                )
                return sibling.name

    if not _chain_is_tagged(node):
        genre = _resolve_untagged(node, root_name)
        if genre is not None:
            logger.debug("Plain hierarchy puts %s under genre %s", node.name, genre)
            return genre

    current = node.parent
    while current is not None:
        if current.has_tag(CATEGORY_TAG):
            logger.debug("Found category ancestor %s for %s", current.name, node.name)
            return current.name
        if current.name == root_name:
            logger.debug("Found %s root ancestor for %s", root_name, node.name)
            return node.name
        current = current.parent

    logger.warning("No category or %s root above %s", root_name, node.name)
    return _resolve_untagged(node, root_name)


def _chain_is_tagged(node: SceneNode) -> bool:
    current: Optional[SceneNode] = node
    while current is not None:
        if current.has_tag(CATEGORY_TAG) or current.has_tag(PRODUCT_TAG):
            return True
        current = current.parent
    return False


def _resolve_untagged(node: SceneNode, root_name: str) -> Optional[str]:
    genre = node.parent
    if genre is None:
        return None
    root = genre.parent
    if root is None or root.name != root_name:
        return None
    return genre.name
