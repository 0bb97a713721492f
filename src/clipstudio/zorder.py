"""Z-order management for composition layers.

Invariant: after any operation here, layers[i].z_index == i for every i.
Array position is the paint order, so "on top" always means the highest
z_index, painted last. Moves are swaps with the direct neighbour; moving
the top layer up or the bottom layer down is a no-op (no wraparound).
"""

from enum import Enum

from .layers import Layer


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


def renumber(layers: list[Layer]) -> None:
    """Rewrite every z_index to its array position (0-based, ascending)."""
    for i, layer in enumerate(layers):
        layer.z_index = i


def move_layer(layers: list[Layer], layer_id: str, direction: Direction | str) -> bool:
    """Swap a layer with its neighbour above or below, in place.

    Returns:
        True if the list changed. False for an unknown id or a move past
        either end, in which case nothing is touched.
    """
    direction = Direction(direction)
    index = next((i for i, l in enumerate(layers) if l.id == layer_id), -1)
    if index < 0:
        return False
    if direction is Direction.UP and index == len(layers) - 1:
        return False
    if direction is Direction.DOWN and index == 0:
        return False

    swap = index + 1 if direction is Direction.UP else index - 1
    layers[index], layers[swap] = layers[swap], layers[index]
    renumber(layers)
    return True


def check_z_order(layers: list[Layer]) -> None:
    """Raise ValueError if z_index values are not exactly 0..n-1 in array order."""
    for i, layer in enumerate(layers):
        if layer.z_index != i:
            raise ValueError(
                f"Layer '{layer.id}' at position {i} has z_index {layer.z_index}"
            )


def paint_order(layers: list[Layer]) -> list[Layer]:
    """Visible layers in the order a renderer should paint them (bottom first)."""
    return sorted((l for l in layers if l.visible), key=lambda l: l.z_index)
