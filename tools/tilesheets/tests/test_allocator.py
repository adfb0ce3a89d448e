#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.tilesheet_core.sheets.allocator import CoordinateAllocator, GridCoordinate


def _xyz(coord: GridCoordinate) -> tuple[int, int, int]:
    return coord.as_tuple()


class CoordinateAllocatorTests(unittest.TestCase):
    def test_first_free_diagonal_slot_after_origin(self) -> None:
        allocator = CoordinateAllocator(32, {"stone": GridCoordinate(0, 0, 0)})
        self.assertEqual(_xyz(allocator.allocate("dirt")), (1, 0, 0))

    def test_fill_order_grows_as_a_square(self) -> None:
        allocator = CoordinateAllocator(32)
        coords = [_xyz(allocator.allocate(f"t{i}")) for i in range(9)]
        self.assertEqual(
            coords,
            [
                (0, 0, 0),
                (1, 0, 0),
                (0, 1, 0),
                (1, 1, 0),
                (2, 0, 0),
                (2, 1, 0),
                (0, 2, 0),
                (1, 2, 0),
                (2, 2, 0),
            ],
        )

    def test_allocate_is_idempotent_and_keeps_cursor(self) -> None:
        allocator = CoordinateAllocator(32)
        allocator.allocate("a")
        first = allocator.allocate("b")
        cursor = allocator.cursor

        again = allocator.allocate("b")

        self.assertEqual(first, again)
        self.assertEqual(allocator.cursor, cursor)
        self.assertEqual(len(allocator), 2)

    def test_existing_cells_are_skipped(self) -> None:
        allocator = CoordinateAllocator(32, {"x": GridCoordinate(1, 0, 0)})
        self.assertEqual(_xyz(allocator.allocate("a")), (0, 0, 0))
        self.assertEqual(_xyz(allocator.allocate("b")), (0, 1, 0))

    def test_full_layer_spills_into_next_depth(self) -> None:
        allocator = CoordinateAllocator(2)
        coords = [_xyz(allocator.allocate(f"t{i}")) for i in range(6)]
        self.assertEqual(
            coords,
            [(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0), (0, 0, 1), (1, 0, 1)],
        )

    def test_same_inputs_give_same_coordinates(self) -> None:
        existing = {"a": GridCoordinate(0, 0, 0), "b": GridCoordinate(2, 1, 0), "c": GridCoordinate(0, 0, 1)}
        names = [f"tile{i}" for i in range(40)]

        first = CoordinateAllocator(4, dict(existing)).allocate_all(names)
        second = CoordinateAllocator(4, dict(reversed(list(existing.items())))).allocate_all(names)

        self.assertEqual(first, second)
        all_cells = list(first.values()) + list(existing.values())
        self.assertEqual(len(set(all_cells)), len(all_cells))

    def test_released_cell_stays_reserved_for_the_run(self) -> None:
        allocator = CoordinateAllocator(32, {"a": GridCoordinate(0, 0, 0), "b": GridCoordinate(1, 0, 0)})
        self.assertEqual(allocator.release("a"), GridCoordinate(0, 0, 0))
        self.assertIsNone(allocator.owner(GridCoordinate(0, 0, 0)))
        self.assertEqual(_xyz(allocator.allocate("c")), (0, 1, 0))

        allocator = CoordinateAllocator(32)
        allocator.allocate_all(["t0", "t1", "t2"])
        allocator.release("t0")
        self.assertEqual(_xyz(allocator.allocate("t3")), (1, 1, 0))

    def test_released_cell_is_free_for_the_next_run(self) -> None:
        # A fresh allocator built from the registry after the deletion went through.
        allocator = CoordinateAllocator(32, {"b": GridCoordinate(1, 0, 0)})
        self.assertEqual(_xyz(allocator.allocate("c")), (0, 0, 0))

    def test_claim_rejects_conflicts(self) -> None:
        allocator = CoordinateAllocator(32, {"a": GridCoordinate(0, 0, 0)})
        with self.assertRaises(ValueError):
            allocator.claim("b", GridCoordinate(0, 0, 0))
        with self.assertRaises(ValueError):
            allocator.claim("a", GridCoordinate(3, 3, 0))
        allocator.claim("a", GridCoordinate(0, 0, 0))
        self.assertEqual(allocator.owner(GridCoordinate(0, 0, 0)), "a")

    def test_negative_coordinates_are_invalid(self) -> None:
        with self.assertRaises(ValueError):
            GridCoordinate(-1, 0, 0)


if __name__ == "__main__":
    unittest.main()
