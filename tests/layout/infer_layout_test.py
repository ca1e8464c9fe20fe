import unittest

from keymap_viewer.config import LayoutConfig
from keymap_viewer.layout import (
    IndeterminateLayoutError,
    LayoutMismatchError,
    divisor_pairs,
    infer_layout,
    known_grid,
)


class TestDivisorPairs(unittest.TestCase):

    def test_pairs_closest_to_square_first(self):
        self.assertEqual(divisor_pairs(12), [(3, 4), (2, 6), (1, 12)])
        self.assertEqual(divisor_pairs(61), [(1, 61)])

    def test_non_positive(self):
        self.assertEqual(divisor_pairs(0), [])
        self.assertEqual(divisor_pairs(-4), [])


class TestInferLayout(unittest.TestCase):

    def test_common_ortho_sizes(self):
        self.assertEqual(infer_layout(48), (4, 12))
        self.assertEqual(infer_layout(60), (5, 12))
        self.assertEqual(infer_layout(30), (3, 10))
        self.assertEqual(infer_layout(75), (5, 15))

    def test_square_boards_fall_back_to_closest_to_square(self):
        self.assertEqual(infer_layout(16), (4, 4))
        self.assertEqual(infer_layout(64), (8, 8))
        self.assertEqual(infer_layout(100), (10, 10))

    def test_fallback_keeps_aspect_limit(self):
        with self.assertRaises(IndeterminateLayoutError):
            infer_layout(64, config=LayoutConfig(fallback_max_aspect=0.5))

    def test_deterministic(self):
        results = {infer_layout(48) for _ in range(20)}
        self.assertEqual(results, {(4, 12)})

    def test_prime_is_indeterminate(self):
        with self.assertRaises(IndeterminateLayoutError) as cm:
            infer_layout(61)
        self.assertEqual(cm.exception.key_count, 61)
        self.assertIn("61", str(cm.exception))

    def test_never_single_row(self):
        for key_count in (7, 13, 61):
            with self.assertRaises(IndeterminateLayoutError):
                infer_layout(key_count)

    def test_zero_keys(self):
        with self.assertRaises(IndeterminateLayoutError):
            infer_layout(0)

    def test_fitting_hint_wins(self):
        self.assertEqual(infer_layout(48, hint=(6, 8)), (6, 8))

    def test_misfitting_hint_is_ignored(self):
        with self.assertLogs("keymap_viewer.layout", level="WARNING"):
            self.assertEqual(infer_layout(48, hint=(5, 10)), (4, 12))

    def test_explicit_grid(self):
        self.assertEqual(infer_layout(48, grid=(2, 24)), (2, 24))
        with self.assertRaises(LayoutMismatchError) as cm:
            infer_layout(48, grid=(5, 10))
        self.assertEqual(cm.exception.grid, (5, 10))
        self.assertEqual(cm.exception.key_count, 48)

    def test_explicit_grid_beats_hint(self):
        self.assertEqual(infer_layout(48, hint=(4, 12), grid=(6, 8)), (6, 8))

    def test_known_keyboard(self):
        self.assertEqual(infer_layout(48, name="planck/rev6"), (4, 12))

    def test_known_keyboard_must_fit(self):
        with self.assertRaises(IndeterminateLayoutError):
            infer_layout(61, name="planck")

    def test_aspect_range_from_config(self):
        config = LayoutConfig(min_aspect=1.0, max_aspect=2.0)
        self.assertEqual(infer_layout(48, config=config), (6, 8))


class TestKnownGrid(unittest.TestCase):

    def test_exact_and_prefix(self):
        self.assertEqual(known_grid("preonic"), (5, 12))
        self.assertEqual(known_grid("Planck/REV6"), (4, 12))
        self.assertEqual(known_grid("LAYOUT_ortho_5x15"), (5, 15))

    def test_unknown(self):
        self.assertIsNone(known_grid("some/unknown/board"))


if __name__ == "__main__":
    unittest.main()
