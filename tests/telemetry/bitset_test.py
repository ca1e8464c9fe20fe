import unittest

from keymap_viewer.telemetry import KeyBitset


class TestKeyBitset(unittest.TestCase):

    def test_empty(self):
        bits = KeyBitset.empty(48)
        self.assertEqual(len(bits), 0)
        self.assertEqual(list(bits), [])
        self.assertEqual(bits.to_bytes(), bytes(6))

    def test_capacity_past_one_word(self):
        bits = KeyBitset.from_indices([99, 0, 63, 64], 100)
        self.assertEqual(len(bits.words), 2)
        self.assertEqual(list(bits), [0, 63, 64, 99])
        self.assertEqual(len(bits), 4)
        self.assertIn(64, bits)
        self.assertNotIn(65, bits)
        self.assertNotIn(100, bits)

    def test_out_of_range_index(self):
        with self.assertRaises(IndexError):
            KeyBitset.from_indices([100], 100)
        with self.assertRaises(IndexError):
            KeyBitset.from_indices([-1], 100)

    def test_bytes_are_little_endian(self):
        bits = KeyBitset.from_indices([0, 9], 16)
        self.assertEqual(bits.to_bytes(), b"\x01\x02")
        self.assertEqual(KeyBitset.from_bytes(b"\x01\x02", 16), bits)

    def test_bytes_round_trip(self):
        for capacity in (1, 8, 48, 64, 65, 100, 200):
            indices = sorted({0, capacity - 1, capacity // 2, capacity // 3})
            bits = KeyBitset.from_indices(indices, capacity)
            self.assertEqual(len(bits.to_bytes()), -(-capacity // 8))
            self.assertEqual(KeyBitset.from_bytes(bits.to_bytes(), capacity), bits, capacity)

    def test_padding_bits_are_masked(self):
        bits = KeyBitset.from_bytes(b"\xff\xff", 10)
        self.assertEqual(list(bits), list(range(10)))

    def test_invalid_words(self):
        with self.assertRaises(ValueError):
            KeyBitset(10, (1 << 10,))
        with self.assertRaises(ValueError):
            KeyBitset(100, (0,))


if __name__ == "__main__":
    unittest.main()
