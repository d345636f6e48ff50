"""Bounding Volume Hierarchy construction and GPU-friendly storage.

The hierarchy is built on the host from a list of primitive bounding boxes,
then flattened in pre-order into Structure-of-Arrays Taichi fields:

    bvh_box_min[i], bvh_box_max[i]   node bounds
    bvh_left[i], bvh_right[i]        child node indices (-1 for leaves)
    bvh_primitive[i]                 primitive index for leaves, -1 otherwise

Node 0 is the root. An empty hierarchy has zero nodes and every query
misses. Each leaf holds exactly one primitive.

Construction picks the axis along which the primitive centroids spread the
most, sorts the primitives by their box minimum on that axis and splits the
sorted list at the median. Traversal lives with the primitive storage in
``pathtracer.scene.intersection``.

Example:
    >>> from pathtracer.geometry.aabb import AABB
    >>> from pathtracer.geometry.bvh import build_bvh, flatten_bvh, upload_bvh
    >>> boxes = [AABB((0, 0, 0), (1, 1, 1)), AABB((2, 0, 0), (3, 1, 1))]
    >>> root = build_bvh(boxes)
    >>> upload_bvh(flatten_bvh(root))
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import taichi as ti

from pathtracer.core.ray import real
from pathtracer.geometry.aabb import AABB, surrounding_box

logger = logging.getLogger(__name__)

# Maximum number of primitives a hierarchy can index
MAX_BVH_PRIMITIVES = 1024

# A binary tree with one primitive per leaf has 2n - 1 nodes
MAX_BVH_NODES = 2 * MAX_BVH_PRIMITIVES

# Traversal stack depth; a median split over MAX_BVH_PRIMITIVES is far shallower
BVH_STACK_SIZE = 64


@dataclass
class BVHNode:
    """Host-side hierarchy node.

    Attributes:
        box: Bounds enclosing every primitive below this node.
        left: Left child (None for leaves).
        right: Right child (None for leaves).
        primitive: Primitive index for leaves, -1 for internal nodes.
    """

    box: AABB
    left: Optional["BVHNode"] = None
    right: Optional["BVHNode"] = None
    primitive: int = -1

    @property
    def is_leaf(self) -> bool:
        return self.primitive >= 0

    def depth(self) -> int:
        """Number of levels in the subtree rooted at this node."""
        if self.is_leaf:
            return 1
        return 1 + max(self.left.depth(), self.right.depth())


@dataclass
class FlatBVH:
    """Pre-order flattened hierarchy ready for upload."""

    box_min: np.ndarray
    box_max: np.ndarray
    left: np.ndarray
    right: np.ndarray
    primitive: np.ndarray

    @property
    def node_count(self) -> int:
        return len(self.primitive)


# =============================================================================
# Construction
# =============================================================================


def build_bvh(boxes: list[AABB]) -> Optional[BVHNode]:
    """Build a hierarchy over primitive bounding boxes.

    Args:
        boxes: One bounding box per primitive; list position is the
            primitive index stored in the leaves.

    Returns:
        The root node, or None for an empty list.

    Raises:
        ValueError: If more than MAX_BVH_PRIMITIVES boxes are given.
    """
    if len(boxes) > MAX_BVH_PRIMITIVES:
        raise ValueError(
            f"Cannot build BVH over {len(boxes)} primitives "
            f"(maximum {MAX_BVH_PRIMITIVES})"
        )
    if not boxes:
        return None
    return _build_recursive(boxes, list(range(len(boxes))))


def _longest_centroid_axis(boxes: list[AABB], indices: list[int]) -> int:
    centroids = np.array([boxes[i].centroid() for i in indices])
    spread = centroids.max(axis=0) - centroids.min(axis=0)
    return int(np.argmax(spread))


def _build_recursive(boxes: list[AABB], indices: list[int]) -> BVHNode:
    if len(indices) == 1:
        idx = indices[0]
        return BVHNode(box=boxes[idx], primitive=idx)

    axis = _longest_centroid_axis(boxes, indices)
    ordered = sorted(indices, key=lambda i: boxes[i].minimum[axis])
    mid = len(ordered) // 2

    left = _build_recursive(boxes, ordered[:mid])
    right = _build_recursive(boxes, ordered[mid:])
    return BVHNode(box=surrounding_box(left.box, right.box), left=left, right=right)


def flatten_bvh(root: Optional[BVHNode]) -> FlatBVH:
    """Flatten a hierarchy into arrays in pre-order (root at index 0)."""
    box_min: list[np.ndarray] = []
    box_max: list[np.ndarray] = []
    left: list[int] = []
    right: list[int] = []
    primitive: list[int] = []

    def visit(node: BVHNode) -> int:
        idx = len(primitive)
        box_min.append(node.box.minimum)
        box_max.append(node.box.maximum)
        left.append(-1)
        right.append(-1)
        primitive.append(node.primitive)
        if not node.is_leaf:
            left[idx] = visit(node.left)
            right[idx] = visit(node.right)
        return idx

    if root is not None:
        visit(root)

    return FlatBVH(
        box_min=np.array(box_min, dtype=np.float64).reshape(-1, 3),
        box_max=np.array(box_max, dtype=np.float64).reshape(-1, 3),
        left=np.array(left, dtype=np.int32),
        right=np.array(right, dtype=np.int32),
        primitive=np.array(primitive, dtype=np.int32),
    )


# =============================================================================
# Field Storage
# =============================================================================

bvh_box_min = ti.Vector.field(3, dtype=real, shape=MAX_BVH_NODES)
bvh_box_max = ti.Vector.field(3, dtype=real, shape=MAX_BVH_NODES)
bvh_left = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
bvh_right = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
bvh_primitive = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
num_bvh_nodes = ti.field(dtype=ti.i32, shape=())


def clear_bvh() -> None:
    """Drop the uploaded hierarchy; queries then see zero nodes."""
    num_bvh_nodes[None] = 0


def upload_bvh(flat: FlatBVH) -> None:
    """Copy a flattened hierarchy into the BVH fields.

    Raises:
        RuntimeError: If the hierarchy exceeds MAX_BVH_NODES.
    """
    n = flat.node_count
    if n > MAX_BVH_NODES:
        raise RuntimeError(f"BVH has {n} nodes, maximum is {MAX_BVH_NODES}")

    # from_numpy copies whole fields, so pad to capacity
    box_min = np.zeros((MAX_BVH_NODES, 3), dtype=np.float64)
    box_max = np.zeros((MAX_BVH_NODES, 3), dtype=np.float64)
    left = np.full(MAX_BVH_NODES, -1, dtype=np.int32)
    right = np.full(MAX_BVH_NODES, -1, dtype=np.int32)
    primitive = np.full(MAX_BVH_NODES, -1, dtype=np.int32)
    box_min[:n] = flat.box_min
    box_max[:n] = flat.box_max
    left[:n] = flat.left
    right[:n] = flat.right
    primitive[:n] = flat.primitive

    bvh_box_min.from_numpy(box_min)
    bvh_box_max.from_numpy(box_max)
    bvh_left.from_numpy(left)
    bvh_right.from_numpy(right)
    bvh_primitive.from_numpy(primitive)
    num_bvh_nodes[None] = n
    logger.debug("Uploaded BVH with %d nodes", n)


def get_bvh_node_count() -> int:
    """Get the number of nodes in the uploaded hierarchy."""
    return int(num_bvh_nodes[None])
