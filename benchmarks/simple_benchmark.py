#!/usr/bin/env python
"""
Simple FFT Benchmarking Tool

A straightforward script to compare omnifft with NumPy's and SciPy's FFT
implementations across power-of-two, composite and prime lengths, plus the
one-time planning cost of each length class.
"""

import numpy as np
import time
import os
import sys
import gc
import platform
import psutil
import matplotlib.pyplot as plt
from pathlib import Path

# Add the src directory to the Python path if needed
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import omnifft

# Try to import SciPy for comparison
try:
    import scipy.fft as scipy_fft
    HAVE_SCIPY = True
except ImportError:
    HAVE_SCIPY = False

# Set up benchmark parameters
REPEATS = 10  # Number of times to repeat each measurement for consistency
WARMUP_RUNS = 3  # Number of warmup runs before timing

# Test lengths, grouped by the algorithms they exercise
SIZE_GROUPS = {
    'pow2': [256, 1024, 4096, 16384, 65536],        # Radix4
    'composite': [360, 1200, 5040, 15625, 720720],  # Good-Thomas and mixed radix
    'prime': [641, 1009, 10007, 65537],             # Rader and Bluestein
}

# Avoid too large sizes on smaller systems
if os.environ.get('SIMPLE_BENCHMARK', '').lower() == 'small':
    SIZE_GROUPS = {
        'pow2': [256, 1024, 4096],
        'composite': [360, 1200],
        'prime': [641, 1009],
    }


def print_system_info():
    """Print the machine details the timings depend on."""
    memory = psutil.virtual_memory()
    print(f"Python {platform.python_version()} on {platform.system()} {platform.machine()}")
    print(f"CPU cores: {psutil.cpu_count(logical=False)} physical, {psutil.cpu_count()} logical")
    print(f"Memory: {memory.total / (1024 ** 3):.1f} GB total, {memory.available / (1024 ** 3):.1f} GB available")
    print(f"NumPy {np.__version__}, omnifft {omnifft.__version__}")


def benchmark_function(func, array, repeats=REPEATS):
    """Benchmark a function with given input array."""
    # Warmup runs
    for _ in range(WARMUP_RUNS):
        result = func(array)
        # Force computation
        _ = result[0]

    # Garbage collect to reduce interference
    gc.collect()

    # Timed runs
    times = []
    for _ in range(repeats):
        start = time.time()
        result = func(array)
        _ = result[0]
        times.append(time.time() - start)

    # Return statistics
    return {
        'mean': sum(times) / len(times),
        'min': min(times),
        'max': max(times),
        'times': times
    }


def format_time(seconds):
    """Format time in a human-readable way."""
    if seconds < 0.001:
        return f"{seconds * 1e6:.2f} µs"
    elif seconds < 1:
        return f"{seconds * 1e3:.2f} ms"
    else:
        return f"{seconds:.4f} s"


def planned_transform(size):
    """Planned algorithm with a preallocated output and scratch buffer."""
    algorithm = omnifft.get_planner().forward(size)
    output = omnifft.empty_aligned(size, dtype=np.complex128)
    scratch = algorithm.make_scratch()

    def run(array):
        algorithm.process_with_scratch(array, output, scratch)
        return output

    return run


def run_1d_benchmarks():
    """Run benchmarks for 1D FFT."""
    print("\n--- 1D FFT Benchmarks ---")
    results = {group: {} for group in SIZE_GROUPS}

    for group, sizes in SIZE_GROUPS.items():
        print(f"\n{group} sizes:")
        for size in sizes:
            print(f"\nBenchmarking 1D FFT with size {size} "
                  f"({omnifft.analyze_length(size)['algorithm']})")
            results[group][size] = {}

            # Create test array
            array = (np.random.random(size) + 1j * np.random.random(size)).astype(np.complex128)

            implementations = {
                'NumPy': np.fft.fft,
                'omnifft': omnifft.fft,
                'omnifft (planned)': planned_transform(size),
            }
            if HAVE_SCIPY:
                implementations['SciPy'] = scipy_fft.fft

            for name, func in implementations.items():
                print(f"  Testing {name}...", end="", flush=True)
                stats = benchmark_function(func, array)
                results[group][size][name] = stats
                print(f" {format_time(stats['mean'])}")

    return results


def run_planning_benchmark():
    """Measure how long building a plan from an empty planner takes."""
    print("\n--- Planning Overhead ---")
    results = {}

    for group, sizes in SIZE_GROUPS.items():
        for size in sizes:
            planner = omnifft.Planner()
            start = time.time()
            algorithm = planner.forward(size)
            elapsed = time.time() - start
            results[size] = elapsed
            print(f"  {size:>8}: {format_time(elapsed):>12}  {algorithm!r}")

    return results


def plot_results(results, output_dir=None):
    """Plot timings per size group and the speedup of planned transforms."""
    output_dir = Path(output_dir or Path(__file__).parent / 'results')
    output_dir.mkdir(parents=True, exist_ok=True)

    timings = results['1d_results']
    for group, group_results in timings.items():
        plt.figure(figsize=(10, 6))

        for impl_name in next(iter(group_results.values())).keys():
            sizes = []
            times = []

            for size, impl_results in group_results.items():
                sizes.append(size)
                times.append(impl_results[impl_name]['mean'])

            plt.plot(sizes, times, 'o-', label=impl_name)

        plt.xlabel('Array Size')
        plt.ylabel('Time (seconds)')
        plt.title(f'1D FFT Performance - {group} sizes')
        plt.xscale('log')
        plt.yscale('log')
        plt.grid(True, alpha=0.3, linestyle='--')
        plt.legend()
        plt.tight_layout()

        plt.savefig(output_dir / f'1d_fft_{group}.png', dpi=150)
        plt.close()

    # Plot planning cost against length
    planning = results['planning_results']
    plt.figure(figsize=(10, 6))
    plt.plot(list(planning.keys()), list(planning.values()), 'o')
    plt.xlabel('Array Size')
    plt.ylabel('Planning time (seconds)')
    plt.title('Plan construction time')
    plt.xscale('log')
    plt.yscale('log')
    plt.grid(True, alpha=0.3, linestyle='--')
    plt.tight_layout()
    plt.savefig(output_dir / 'planning_time.png', dpi=150)
    plt.close()

    print(f"\nPlots saved to {output_dir}")


def main():
    """Run the benchmark and plot results."""
    print("Starting simple FFT benchmark...")
    print_system_info()

    # Run benchmarks
    results = {}

    print("\nRunning 1D FFT benchmarks...")
    results['1d_results'] = run_1d_benchmarks()

    print("\nRunning planning benchmarks...")
    results['planning_results'] = run_planning_benchmark()

    # Generate plots
    plot_results(results)

    print("\nBenchmark completed!")


if __name__ == "__main__":
    main()
