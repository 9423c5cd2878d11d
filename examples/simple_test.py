"""
Simple test script for omnifft
"""

# Add the src directory to the Python path
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import numpy as np
import time


def main():
    # Create sample data; 1009 is prime, so the plan needs Bluestein
    print("Creating test data...")
    size = 1009
    data = np.random.random(size) + 1j * np.random.random(size)

    # Run with NumPy
    print("\nTesting NumPy FFT...")
    start = time.time()
    np_result = np.fft.fft(data)
    numpy_time = time.time() - start
    print(f"NumPy FFT: {numpy_time:.4f} seconds")

    # Import omnifft
    print("\nImporting omnifft...")
    import omnifft

    # Plan once, then reuse the algorithm
    print("\nPlanning...")
    planner = omnifft.Planner()
    start = time.time()
    fft = planner.plan(size, omnifft.FORWARD)
    ifft = planner.plan(size, omnifft.INVERSE)
    print(f"Planned in {time.time() - start:.4f} seconds: {fft!r}")

    print("\nTesting omnifft planned call...")
    output = np.empty(size, dtype=np.complex128)
    start = time.time()
    fft.process(data, output)
    omni_time = time.time() - start
    print(f"omnifft planned: {omni_time:.4f} seconds")

    # Verify results match
    print(f"\nResults match: {np.allclose(np_result, output)}")

    # Transforms are unnormalized, so the round trip scales by the length
    restored = np.empty(size, dtype=np.complex128)
    ifft.process(output, restored)
    print(f"Round trip matches: {np.allclose(restored / size, data)}")

    # numpy.fft style call
    print(f"omnifft.fft matches: {np.allclose(omnifft.fft(data), np_result)}")

    print("\nDone!")


if __name__ == "__main__":
    main()
