import os
import unittest
import numpy as np
import scipy.fft
import pyfftw

import omnifft
from omnifft import InvalidLengthError


class TestConvenienceFunctions(unittest.TestCase):

    def setUp(self):
        # create test arrays with fixed seed for reproducibility
        np.random.seed(42)

        self.real_1d = np.random.random(100)
        self.complex_1d = self.real_1d + 1j * np.random.random(100)
        self.complex_prime = np.random.random(101) + 1j * np.random.random(101)
        self.complex_2d = np.random.random((12, 30)) + 1j * np.random.random((12, 30))
        self.complex_3d = np.random.random((4, 6, 5)) + 1j * np.random.random((4, 6, 5))

    def _assert_allclose(self, a, b, msg=None):
        """Helper to compare arrays with appropriate tolerance based on dtype."""
        if a.dtype == np.complex64 or b.dtype == np.complex64:
            rtol, atol = 1e-4, 1e-4
        else:
            rtol, atol = 1e-10, 1e-10
        np.testing.assert_allclose(a, b, rtol=rtol, atol=atol, err_msg=msg or '')

    def test_fft_1d(self):
        for x in [self.real_1d, self.complex_1d, self.complex_prime]:
            result = omnifft.fft(x)
            self.assertEqual(result.dtype, np.complex128)
            self._assert_allclose(result, np.fft.fft(x))
            self._assert_allclose(result, scipy.fft.fft(x))

    def test_ifft_1d(self):
        for x in [self.complex_1d, self.complex_prime]:
            self._assert_allclose(omnifft.ifft(x), np.fft.ifft(x))
            self._assert_allclose(omnifft.ifft(omnifft.fft(x)), x)

    def test_axis(self):
        for axis in [0, 1, -1]:
            self._assert_allclose(omnifft.fft(self.complex_2d, axis=axis),
                                  np.fft.fft(self.complex_2d, axis=axis))
        for axis in [0, 1, 2]:
            self._assert_allclose(omnifft.ifft(self.complex_3d, axis=axis),
                                  np.fft.ifft(self.complex_3d, axis=axis))

    def test_n_crop_and_pad(self):
        for n in [1, 50, 64, 100, 127, 250]:
            self._assert_allclose(omnifft.fft(self.complex_1d, n=n), np.fft.fft(self.complex_1d, n=n))
            self._assert_allclose(omnifft.ifft(self.complex_2d, n=n, axis=0),
                                  np.fft.ifft(self.complex_2d, n=n, axis=0))

    def test_norm(self):
        for norm in [None, 'backward', 'ortho', 'forward']:
            self._assert_allclose(omnifft.fft(self.complex_1d, norm=norm),
                                  np.fft.fft(self.complex_1d, norm=norm), f"fft norm={norm}")
            self._assert_allclose(omnifft.ifft(self.complex_prime, norm=norm),
                                  np.fft.ifft(self.complex_prime, norm=norm), f"ifft norm={norm}")
        with self.assertRaises(ValueError):
            omnifft.fft(self.complex_1d, norm='unitary')

    def test_dtypes(self):
        single = self.complex_1d.astype(np.complex64)
        result = omnifft.fft(single)
        self.assertEqual(result.dtype, np.complex64)
        self._assert_allclose(result, np.fft.fft(self.complex_1d))

        self.assertEqual(omnifft.fft(self.real_1d.astype(np.float32)).dtype, np.complex64)
        self.assertEqual(omnifft.fft(np.arange(16)).dtype, np.complex128)
        self._assert_allclose(omnifft.fft(np.arange(16)), np.fft.fft(np.arange(16)))
        self._assert_allclose(omnifft.fft([1, 2, 3]), np.fft.fft([1, 2, 3]))

    def test_input_unmodified(self):
        x = self.complex_2d.copy()
        omnifft.fft(x, axis=0)
        np.testing.assert_array_equal(x, self.complex_2d)

    def test_invalid_arguments(self):
        with self.assertRaises(InvalidLengthError):
            omnifft.fft(self.complex_1d, n=0)
        with self.assertRaises(InvalidLengthError):
            omnifft.fft(np.array([]))
        with self.assertRaises(ValueError):
            omnifft.fft(np.complex128(1.0))

    def test_empty_batch(self):
        result = omnifft.fft(np.zeros((0, 8), dtype=np.complex128))
        self.assertEqual(result.shape, (0, 8))

    def test_alignment_functions(self):
        aligned = omnifft.empty_aligned(1024, dtype=np.complex128)
        self.assertEqual(aligned.shape, (1024,))
        self.assertTrue(pyfftw.is_byte_aligned(aligned))

        realigned = omnifft.byte_align(np.arange(10, dtype=np.complex128)[1:])
        self.assertTrue(pyfftw.is_byte_aligned(realigned))
        np.testing.assert_array_equal(realigned, np.arange(1, 10))

    def test_stat_functions(self):
        omnifft.clear_cache()
        omnifft.fft(self.complex_1d)
        stats = omnifft.get_stats()
        self.assertIn('complex128', stats['planners'])
        self.assertGreater(stats['total_plans'], 0)

        omnifft.clear_cache()
        self.assertEqual(omnifft.get_stats()['total_plans'], 0)


class TestConfiguration(unittest.TestCase):

    def setUp(self):
        self.defaults = omnifft.get_config()

    def tearDown(self):
        omnifft.configure(self.defaults)

    def test_configure_kwargs(self):
        config = omnifft.configure(planning_direct_threshold=8, planning_use_butterflies=False)
        self.assertEqual(config['planning']['direct_threshold'], 8)
        planner = omnifft.get_planner()
        self.assertEqual(planner.options.direct_threshold, 8)
        self.assertEqual(planner.forward(7).name, 'DFT')

        # results are unchanged by planning settings
        x = np.random.random(7) + 1j * np.random.random(7)
        np.testing.assert_allclose(omnifft.fft(x), np.fft.fft(x), atol=1e-10)

    def test_configure_dict(self):
        omnifft.configure({'precision': {'default_dtype': 'complex64'}})
        self.assertEqual(omnifft.get_planner().dtype, np.complex64)
        self.assertEqual(omnifft.Planner().dtype, np.complex64)

    def test_configure_drops_default_planners(self):
        before = omnifft.get_planner()
        omnifft.configure(planning_prefer_good_thomas=False)
        after = omnifft.get_planner()
        self.assertIsNot(before, after)
        self.assertEqual(after.forward(12).name, 'MixedRadix')

    def test_explicit_overrides_win(self):
        omnifft.configure(planning_use_butterflies=False)
        self.assertEqual(omnifft.Planner(use_butterflies=True).forward(5).name, 'Butterfly5')

    def test_unknown_key_warns(self):
        with self.assertLogs('omnifft', level='WARNING') as logs:
            omnifft.configure(planning_threads=4)
        self.assertIn('planning_threads', logs.output[0])

    def test_invalid_value_keeps_old_config(self):
        with self.assertRaises(ValueError):
            omnifft.configure(planning_bluestein_inner_length='smallest')
        self.assertEqual(omnifft.get_config(), self.defaults)
        with self.assertRaises(ValueError):
            omnifft.configure(precision_default_dtype='float64')
        with self.assertRaises(ValueError):
            omnifft.configure(logging_level='LOUD')
        self.assertEqual(omnifft.get_config(), self.defaults)
        with self.assertRaises(ValueError):
            omnifft.configure(planning_rader_max_inner_prime='x')
        with self.assertRaises(ValueError):
            omnifft.configure(planning_use_butterflies='no')
        self.assertEqual(omnifft.get_config(), self.defaults)
        self.assertEqual(omnifft.get_planner().forward(7).name, 'Rader')

    def test_logging_level(self):
        omnifft.configure(logging_level='DEBUG')
        with self.assertLogs('omnifft.core', level='DEBUG') as logs:
            omnifft.Planner().forward(12)
        self.assertTrue(any('GoodThomas(12' in line for line in logs.output))

    def test_environment(self):
        os.environ['OMNIFFT_PLANNING_DIRECT_THRESHOLD'] = '9'
        os.environ['OMNIFFT_PLANNING_PREFER_GOOD_THOMAS'] = 'false'
        try:
            omnifft._load_env_config()
            config = omnifft.get_config()
            self.assertEqual(config['planning']['direct_threshold'], 9)
            self.assertIs(config['planning']['prefer_good_thomas'], False)
            self.assertEqual(omnifft.get_planner().options.direct_threshold, 9)
        finally:
            del os.environ['OMNIFFT_PLANNING_DIRECT_THRESHOLD']
            del os.environ['OMNIFFT_PLANNING_PREFER_GOOD_THOMAS']


if __name__ == "__main__":
    unittest.main()
