import unittest
import concurrent.futures
import numpy as np

from omnifft import butterflies
from omnifft.twiddles import TwiddleCache, compute_twiddle, generate_twiddle_factors


class TestTwiddles(unittest.TestCase):

    def test_compute_twiddle(self):
        self.assertAlmostEqual(compute_twiddle(0, 8), 1.0)
        self.assertAlmostEqual(compute_twiddle(1, 4), -1j)
        self.assertAlmostEqual(compute_twiddle(1, 4, inverse=True), 1j)
        self.assertAlmostEqual(compute_twiddle(2, 4), -1.0)
        # indices are reduced modulo the length
        self.assertAlmostEqual(compute_twiddle(9, 8), compute_twiddle(1, 8))
        self.assertAlmostEqual(compute_twiddle(-1, 8), compute_twiddle(7, 8))

    def test_generate_twiddle_factors(self):
        table = generate_twiddle_factors(12)
        np.testing.assert_allclose(table, np.exp(-2j * np.pi * np.arange(12) / 12), atol=1e-15)
        self.assertEqual(generate_twiddle_factors(12, dtype=np.complex64).dtype, np.complex64)

    def test_table_is_cached_and_read_only(self):
        cache = TwiddleCache()
        table = cache.get_table(100)
        self.assertIs(table, cache.get_table(100))
        self.assertFalse(table.flags.writeable)
        with self.assertRaises(ValueError):
            table[0] = 0

        stats = cache.get_stats()
        self.assertEqual(stats['tables'], 1)
        self.assertEqual(stats['misses'], 1)
        self.assertEqual(stats['hits'], 1)
        self.assertEqual(stats['bytes'], table.nbytes)
        self.assertIn(100, cache)
        self.assertEqual(len(cache), 1)

    def test_get_twiddles(self):
        cache = TwiddleCache()
        indices = np.array([[0, 1, 2], [3, 10, -1]])
        forward = cache.get_twiddles(indices, 8)
        self.assertEqual(forward.shape, (2, 3))
        np.testing.assert_allclose(forward, np.exp(-2j * np.pi * indices / 8), atol=1e-15)
        self.assertFalse(forward.flags.writeable)

        inverse = cache.get_twiddles(indices, 8, inverse=True)
        np.testing.assert_allclose(inverse, np.conj(forward))
        # the shared table itself stays in the forward direction
        np.testing.assert_allclose(cache.get_table(8)[1], np.exp(-2j * np.pi / 8))

    def test_get_twiddle(self):
        cache = TwiddleCache(np.complex64)
        value = cache.get_twiddle(1, 3)
        self.assertIsInstance(value, complex)
        self.assertAlmostEqual(value, np.exp(-2j * np.pi / 3), places=6)
        self.assertAlmostEqual(cache.get_twiddle(1, 3, inverse=True), value.conjugate())
        self.assertEqual(cache.get_table(3).dtype, np.complex64)

    def test_concurrent_access(self):
        cache = TwiddleCache()
        with concurrent.futures.ThreadPoolExecutor(max_workers=8) as executor:
            tables = list(executor.map(cache.get_table, [4096] * 32))
        for table in tables:
            self.assertIs(table, tables[0])
        self.assertEqual(cache.get_stats()['misses'], 1)


class TestButterflies(unittest.TestCase):

    def setUp(self):
        np.random.seed(42)
        self.cache = TwiddleCache()

    def test_rotate_90(self):
        values = np.array([1 + 2j, -3 + 0.5j])
        np.testing.assert_allclose(butterflies.rotate_90(values, False), values * -1j)
        np.testing.assert_allclose(butterflies.rotate_90(values, True), values * 1j)

    def test_apply_butterfly(self):
        for n in butterflies.BUTTERFLY_LENGTHS:
            for inverse in (False, True):
                # ten independent transforms, one per row
                x = np.random.random((10, n)) + 1j * np.random.random((10, n))
                constants = butterflies.butterfly_constants(n, self.cache, inverse)
                columns = [x[:, j] for j in range(n)]
                result = np.stack(butterflies.apply_butterfly(n, columns, constants), axis=1)
                expected = np.fft.ifft(x, axis=1) * n if inverse else np.fft.fft(x, axis=1)
                np.testing.assert_allclose(result, expected, atol=1e-12)

    def test_single_precision_stays_single(self):
        x = (np.random.random((4, 5)) + 1j * np.random.random((4, 5))).astype(np.complex64)
        cache = TwiddleCache(np.complex64)
        constants = butterflies.butterfly_constants(5, cache, False)
        result = butterflies.apply_butterfly(5, [x[:, j] for j in range(5)], constants)
        for column in result:
            self.assertEqual(column.dtype, np.complex64)

    def test_radix4_combine(self):
        # four length-1 sub-transforms merge into a length-4 transform
        x = np.random.random(4) + 1j * np.random.random(4)
        quarters = butterflies.radix4_combine(x[0], x[1], x[2], x[3], 1.0, 1.0, 1.0, False)
        np.testing.assert_allclose(np.array(quarters), np.fft.fft(x), atol=1e-12)

    def test_unsupported_length(self):
        with self.assertRaises(ValueError):
            butterflies.butterfly_constants(7, self.cache, False)


if __name__ == "__main__":
    unittest.main()
