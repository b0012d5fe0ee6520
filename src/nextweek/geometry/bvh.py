"""Bounding volume hierarchy construction and GPU-style flat storage.

The BVH is built once per render in plain Python over the scene's leaf
primitives, then flattened depth-first into Taichi fields so kernels can
traverse it with an explicit stack (Taichi functions cannot recurse).

Construction is a top-down median split:

1. One object becomes a leaf; two objects become a node with two leaves.
2. Otherwise the objects are sorted by bounding-box centroid along the axis
   where the centroids spread the most, and split at the middle index.
3. Each node caches the union of its children's boxes.

Boxes are computed over the render's shutter interval, so every node's box
contains its primitives at every time a ray can carry.

Example:
    >>> from nextweek.geometry.hittable import SphereObject
    >>> spheres = [SphereObject((x, 0.0, -3.0), 0.5, material_id=0) for x in range(4)]
    >>> root = build_bvh(spheres, 0.0, 1.0)
    >>> arrays = flatten_bvh(root)
    >>> int(arrays["num_nodes"])
    7
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import taichi as ti
import taichi.math as tm

from .aabb import AABB

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Leaf primitives supported by one scene; a binary tree with one primitive
# per leaf needs 2N - 1 nodes
MAX_PRIMITIVES = 8192
MAX_BVH_NODES = 2 * MAX_PRIMITIVES - 1

# Traversal stack size; median splits keep the depth near log2(N) + 1
BVH_STACK_SIZE = 64


@dataclass
class BVHNode:
    """A node of the Python-side BVH.

    Attributes:
        box: Union of the boxes of everything below this node.
        left: Left child (None for leaves).
        right: Right child (None for leaves).
        primitive: Index into the list the tree was built from (leaves only,
            -1 for internal nodes).
    """

    box: AABB
    left: BVHNode | None = None
    right: BVHNode | None = None
    primitive: int = -1

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def depth(self) -> int:
        if self.is_leaf():
            return 1
        return 1 + max(self.left.depth(), self.right.depth())

    def node_count(self) -> int:
        if self.is_leaf():
            return 1
        return 1 + self.left.node_count() + self.right.node_count()


def build_bvh(objects: Sequence, time0: float = 0.0, time1: float = 1.0) -> BVHNode:
    """Build a median-split BVH over objects exposing ``bounding_box(t0, t1)``.

    Args:
        objects: Hittables or leaf primitives to partition.
        time0: Shutter open time.
        time1: Shutter close time.

    Returns:
        The root node. Leaves refer to objects by their index in ``objects``.

    Raises:
        ValueError: If ``objects`` is empty.
    """
    if len(objects) == 0:
        raise ValueError("Cannot build a BVH over an empty list of objects")

    boxes = [obj.bounding_box(time0, time1) for obj in objects]
    centroids = np.array([box.centroid() for box in boxes])
    root = _build_range(list(range(len(objects))), boxes, centroids)
    logger.debug(
        "Built BVH over %d objects: %d nodes, depth %d",
        len(objects),
        root.node_count(),
        root.depth(),
    )
    return root


def _build_range(indices: list[int], boxes: list[AABB], centroids: np.ndarray) -> BVHNode:
    if len(indices) == 1:
        return BVHNode(box=boxes[indices[0]], primitive=indices[0])

    if len(indices) == 2:
        left = BVHNode(box=boxes[indices[0]], primitive=indices[0])
        right = BVHNode(box=boxes[indices[1]], primitive=indices[1])
        return BVHNode(box=left.box.union(right.box), left=left, right=right)

    # Split along the axis where the centroids spread the most
    axis = AABB.from_points(centroids[indices]).longest_axis()
    ordered = sorted(indices, key=lambda i: centroids[i, axis])
    mid = len(ordered) // 2

    left = _build_range(ordered[:mid], boxes, centroids)
    right = _build_range(ordered[mid:], boxes, centroids)
    return BVHNode(box=left.box.union(right.box), left=left, right=right)


def flatten_bvh(root: BVHNode) -> dict[str, np.ndarray]:
    """Flatten a BVH depth-first into arrays ready for upload.

    Node 0 is the root. Internal nodes store child indices; leaves store
    ``left = right = -1`` and the primitive index.

    Returns:
        Dict with ``bbox_min``/``bbox_max`` (N, 3) float32, ``left``,
        ``right``, ``primitive`` (N,) int32 and ``num_nodes``.
    """
    nodes: list[BVHNode] = []
    left_idx: list[int] = []
    right_idx: list[int] = []

    def visit(node: BVHNode) -> int:
        index = len(nodes)
        nodes.append(node)
        left_idx.append(-1)
        right_idx.append(-1)
        if not node.is_leaf():
            left_idx[index] = visit(node.left)
            right_idx[index] = visit(node.right)
        return index

    visit(root)

    n = len(nodes)
    return {
        "bbox_min": np.array([node.box.min for node in nodes], dtype=np.float32).reshape(n, 3),
        "bbox_max": np.array([node.box.max for node in nodes], dtype=np.float32).reshape(n, 3),
        "left": np.array(left_idx, dtype=np.int32),
        "right": np.array(right_idx, dtype=np.int32),
        "primitive": np.array([node.primitive for node in nodes], dtype=np.int32),
        "num_nodes": np.int32(n),
    }


# =============================================================================
# Flat BVH storage (read by the traversal in nextweek.scene.intersection)
# =============================================================================

bvh_bbox_min = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BVH_NODES)
bvh_bbox_max = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BVH_NODES)
bvh_left = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
bvh_right = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
bvh_primitive = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
num_bvh_nodes = ti.field(dtype=ti.i32, shape=())


def clear_bvh() -> None:
    """Drop the uploaded BVH; traversal then reports no hits."""
    num_bvh_nodes[None] = 0


def upload_bvh(arrays: dict[str, np.ndarray]) -> None:
    """Copy flattened BVH arrays into the Taichi fields.

    Raises:
        RuntimeError: If the tree has more nodes than the fields hold.
    """
    n = int(arrays["num_nodes"])
    if n > MAX_BVH_NODES:
        raise RuntimeError(f"Maximum number of BVH nodes ({MAX_BVH_NODES}) exceeded")

    def padded(name: str, fill, width: int | None = None) -> np.ndarray:
        shape = (MAX_BVH_NODES,) if width is None else (MAX_BVH_NODES, width)
        out = np.full(shape, fill, dtype=arrays[name].dtype)
        out[:n] = arrays[name]
        return out

    bvh_bbox_min.from_numpy(padded("bbox_min", 0.0, 3))
    bvh_bbox_max.from_numpy(padded("bbox_max", 0.0, 3))
    bvh_left.from_numpy(padded("left", -1))
    bvh_right.from_numpy(padded("right", -1))
    bvh_primitive.from_numpy(padded("primitive", -1))
    num_bvh_nodes[None] = n


def get_bvh_node_count() -> int:
    """Get the number of nodes in the uploaded BVH."""
    return int(num_bvh_nodes[None])
