from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None

RGB_ROWS = [
    [255, 0, 0],
    [0, 255, 0],
    [0, 255, 0],
    [255, 0, 0],
    [0, 0, 255],
    [0, 0, 255],
]


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for unique-indexer tests")
class UniqueIndexerTests(unittest.TestCase):
    def _colors(self, rows):
        import jax.numpy as jnp

        from vecx_jax import FixedArray

        Color = FixedArray[jnp.uint8, 3]
        return [Color(row) for row in rows]

    def _check_invariants(self, inputs, result) -> None:
        self.assertEqual(len(result.indices), len(inputs))
        self.assertEqual(len(result), len(inputs))
        indices = result.indices.tolist()
        for i, value in enumerate(inputs):
            self.assertLess(indices[i], len(result.values))
            self.assertTrue(result.values[indices[i]].identical(value))

        keys = [value.content_key() for value in result.values]
        self.assertEqual(len(keys), len(set(keys)))

        first_seen: list[tuple] = []
        for value in inputs:
            key = value.content_key()
            if key not in first_seen:
                first_seen.append(key)
        self.assertEqual(keys, first_seen)

    def test_palette_and_indices_for_colors(self) -> None:
        from vecx_jax import UniqueIndexer

        colors = self._colors(RGB_ROWS)
        result = UniqueIndexer.from_sequence(colors)
        self.assertEqual([v.tolist() for v in result.values], [[255, 0, 0], [0, 255, 0], [0, 0, 255]])
        self.assertEqual(result.indices.tolist(), [0, 1, 1, 0, 2, 2])
        self.assertEqual(result.indices.dtype.name, "uint32")
        self.assertEqual(result.num_values, 3)
        self._check_invariants(colors, result)

    def test_interleaved_repeats(self) -> None:
        from vecx_jax import UniqueIndexer

        colors = self._colors([[255, 0, 0], [0, 255, 0], [255, 0, 0], [255, 0, 0], [0, 0, 255], [0, 255, 0]])
        result = UniqueIndexer.from_sequence(colors)
        self.assertEqual(len(result.values), 3)
        self.assertEqual(result.values[0].tolist(), [255, 0, 0])
        self.assertEqual(result.values[1].tolist(), [0, 255, 0])
        self.assertEqual(result.values[2].tolist(), [0, 0, 255])
        self.assertEqual(result.indices.tolist(), [0, 1, 0, 0, 2, 1])

    def test_empty_input(self) -> None:
        from vecx_jax import IndexedArrays, UniqueIndexer

        result = UniqueIndexer.from_sequence([])
        self.assertEqual(result.values, ())
        self.assertEqual(result.indices.tolist(), [])
        self.assertEqual(len(result), 0)
        self.assertEqual(result.to_list(), [])

        empty = IndexedArrays.empty()
        self.assertEqual(empty.values, ())
        self.assertEqual(empty.to_array().shape, (0, 0))

    def test_all_identical_input(self) -> None:
        from vecx_jax import FixedArray, UniqueIndexer

        inputs = [FixedArray([7, 7]) for _ in range(5)]
        result = UniqueIndexer.from_sequence(inputs)
        self.assertEqual(len(result.values), 1)
        self.assertEqual(result.values[0], FixedArray([7, 7]))
        self.assertEqual(result.indices.tolist(), [0, 0, 0, 0, 0])

    def test_invariants_on_random_input(self) -> None:
        import jax
        import jax.numpy as jnp

        from vecx_jax import FixedArray, UniqueIndexer

        rows = jax.random.randint(jax.random.PRNGKey(0), (64, 2), 0, 4, dtype=jnp.int32)
        inputs = [FixedArray(row) for row in rows]
        result = UniqueIndexer.from_sequence(inputs)
        self.assertLessEqual(len(result.values), 16)
        self._check_invariants(inputs, result)
        for i, value in enumerate(inputs):
            self.assertEqual(result[i], value)

    def test_incremental_insert(self) -> None:
        from vecx_jax import UniqueIndexer

        a, b, _, _, c, _ = self._colors(RGB_ROWS)
        indexer = UniqueIndexer()
        self.assertTrue(indexer.insert(a))
        self.assertTrue(indexer.insert(b))
        self.assertFalse(indexer.insert(a))
        self.assertEqual(len(indexer), 3)
        self.assertEqual(indexer.num_values, 2)

        snapshot = indexer.result()
        indexer.extend([c, b])
        self.assertEqual(snapshot.indices.tolist(), [0, 1, 0])
        self.assertEqual(len(snapshot.values), 2)
        self.assertEqual(indexer.result().indices.tolist(), [0, 1, 0, 2, 1])

    def test_rejects_mixed_inputs(self) -> None:
        import jax.numpy as jnp

        from vecx_jax import FixedArray, UniqueIndexer, VecXShapeError, VecXTypeError

        with self.assertRaises(VecXTypeError):
            UniqueIndexer.from_sequence([FixedArray([1, 2]), FixedArray([1, 2], dtype=jnp.uint8)])
        with self.assertRaises(VecXShapeError):
            UniqueIndexer.from_sequence([FixedArray([1, 2]), FixedArray([1, 2, 3])])
        with self.assertRaises(VecXTypeError):
            UniqueIndexer.from_sequence([[1, 2]])

    def test_float_keys_use_bit_patterns(self) -> None:
        import math

        from vecx_jax import FixedArray, UniqueIndexer

        inputs = [
            FixedArray([0.0]),
            FixedArray([-0.0]),
            FixedArray([math.nan]),
            FixedArray([0.0]),
            FixedArray([math.nan]),
        ]
        result = UniqueIndexer.from_sequence(inputs)
        self.assertEqual(len(result.values), 3)
        self.assertEqual(result.indices.tolist(), [0, 1, 2, 0, 2])
        self.assertEqual(math.copysign(1.0, result.values[1].tolist()[0]), -1.0)
        self._check_invariants(inputs, result)

    def test_array_path_matches_sequence_path(self) -> None:
        import jax
        import jax.numpy as jnp

        from vecx_jax import FixedArray, UniqueIndexer

        cases = [
            jnp.asarray(RGB_ROWS, dtype=jnp.uint8),
            jax.random.randint(jax.random.PRNGKey(3), (50, 3), -2, 2, dtype=jnp.int32),
            jnp.asarray([[0.0, 1.0], [-0.0, 1.0], [jnp.nan, 1.0], [0.0, 1.0], [jnp.nan, 1.0]], dtype=jnp.float32),
        ]
        for rows in cases:
            fast = UniqueIndexer.from_array(rows)
            slow = UniqueIndexer.from_sequence([FixedArray(row) for row in rows])
            self.assertEqual(fast.indices.tolist(), slow.indices.tolist())
            self.assertEqual(
                [v.content_key() for v in fast.values],
                [v.content_key() for v in slow.values],
            )

        colors = UniqueIndexer.from_array(jnp.asarray(RGB_ROWS, dtype=jnp.uint8))
        self.assertEqual(colors.indices.tolist(), [0, 1, 1, 0, 2, 2])

    def test_array_path_edge_shapes(self) -> None:
        import jax.numpy as jnp

        from vecx_jax import UniqueIndexer, VecXShapeError, VecXTypeError

        empty = UniqueIndexer.from_array(jnp.zeros((0, 3), dtype=jnp.uint8))
        self.assertEqual(empty.values, ())
        self.assertEqual(empty.indices.tolist(), [])

        zero_width = UniqueIndexer.from_array(jnp.zeros((4, 0), dtype=jnp.int32))
        self.assertEqual(len(zero_width.values), 1)
        self.assertEqual(zero_width.indices.tolist(), [0, 0, 0, 0])

        with self.assertRaises(VecXShapeError):
            UniqueIndexer.from_array(jnp.zeros((3,), dtype=jnp.int32))
        with self.assertRaises(VecXTypeError):
            UniqueIndexer.from_array(jnp.zeros((2, 2), dtype=jnp.bool_))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for indexed-array result tests")
class IndexedArraysTests(unittest.TestCase):
    def test_reconstruction_helpers(self) -> None:
        import jax.numpy as jnp

        from vecx_jax import FixedArray, UniqueIndexer

        Color = FixedArray[jnp.uint8, 3]
        result = UniqueIndexer.from_sequence([Color(row) for row in RGB_ROWS])

        self.assertEqual(result[3].tolist(), [255, 0, 0])
        self.assertEqual([v.tolist() for v in result], RGB_ROWS)
        self.assertEqual([v.tolist() for v in result.to_list()], RGB_ROWS)
        self.assertEqual(result.values_array().shape, (3, 3))
        self.assertEqual(result.to_array().tolist(), RGB_ROWS)
        self.assertEqual(result.to_array().dtype.name, "uint8")

    def test_out_of_range_access_raises(self) -> None:
        from vecx_jax import FixedArray, UniqueIndexer, VecXIndexError

        result = UniqueIndexer.from_sequence([FixedArray([1]), FixedArray([2])])
        with self.assertRaises(VecXIndexError):
            result[2]
        with self.assertRaises(VecXIndexError):
            result[-1]

    def test_construction_validates_indices(self) -> None:
        from vecx_jax import FixedArray, IndexedArrays, VecXIndexError, VecXShapeError

        value = FixedArray([1, 2])
        ok = IndexedArrays(values=(value,), indices=[0, 0])
        self.assertEqual(ok.indices.tolist(), [0, 0])
        self.assertEqual(ok.indices.dtype.name, "uint32")

        with self.assertRaises(VecXIndexError) as ctx:
            IndexedArrays(values=(value,), indices=[0, 1])
        self.assertEqual(ctx.exception.index, 1)
        with self.assertRaises(VecXShapeError):
            IndexedArrays(values=(value,), indices=[[0]])


if __name__ == "__main__":
    unittest.main()
