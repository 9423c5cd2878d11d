"""
omnifft: mixed-algorithm FFT planning for every transform length.

this package computes forward and inverse discrete Fourier transforms of any
positive length in O(N log N). a planner factorizes the length and assembles
a tree of algorithms (hardcoded butterflies, radix-4, mixed radix,
Good-Thomas, Rader and Bluestein) that share cached twiddle factors.

Basic usage:
    import numpy as np
    import omnifft

    planner = omnifft.Planner()
    fft = planner.plan(1200, omnifft.FORWARD)

    x = np.random.random(1200) + 1j * np.random.random(1200)
    out = np.empty(1200, dtype=np.complex128)
    fft.process(x, out)

numpy.fft style usage:
    y = omnifft.fft(x)
    x_again = omnifft.ifft(y)

Configuration:
    omnifft.configure(planning_direct_threshold=8, logging_level='DEBUG')
"""

import os
import logging


__version__ = '0.1.0'

from . import core
from . import planning

# Import core functionality
from .core import (
    # Planner and directions
    Planner, FORWARD, INVERSE,

    # numpy.fft style functions
    fft, ifft,

    # Utility functions
    empty_aligned, byte_align,
    get_planner, get_stats, clear_cache,
)

# Algorithms for building plans by hand
from .algorithms import (
    FFTAlgorithm, Noop, DFTAlgorithm, Butterfly, Radix4, MixedRadix,
    GoodThomas, Bluestein, Rader,
)

from .exceptions import (
    FFTError, InvalidLengthError, LengthMismatchError, InsufficientScratchError,
)

# Import planning helpers for advanced users
from .planning import (
    PlanningOptions, Decomposition,
    choose_decomposition, analyze_length,
    optimal_transform_size, bluestein_inner_length,
)

from .twiddles import TwiddleCache, compute_twiddle

logger = logging.getLogger("omnifft")

# Configuration system
_config = {
    # Default configuration
    'planning': {
        'direct_threshold': 6,
        'use_butterflies': True,
        'prefer_good_thomas': True,
        'rader_max_inner_prime': 5,
        'bluestein_inner_length': 'power_of_two',
    },
    'precision': {
        'default_dtype': 'complex128',
    },
    'logging': {
        'level': 'WARNING',
    }
}


def _update_nested_dict(d, u):
    """Update nested dictionary recursively."""
    for k, v in u.items():
        if isinstance(v, dict) and k in d and isinstance(d[k], dict):
            _update_nested_dict(d[k], v)
        else:
            d[k] = v


def _apply_configuration():
    """Apply configuration settings to module components."""
    settings = _config['planning']

    # validate before touching any module state
    planning.default_options(**settings)
    core.check_dtype(_config['precision']['default_dtype'])
    level = logging.getLevelName(str(_config['logging']['level']).upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid logging level: {_config['logging']['level']}")

    planning.DIRECT_THRESHOLD = settings['direct_threshold']
    planning.USE_BUTTERFLIES = settings['use_butterflies']
    planning.PREFER_GOOD_THOMAS = settings['prefer_good_thomas']
    planning.RADER_MAX_INNER_PRIME = settings['rader_max_inner_prime']
    planning.BLUESTEIN_INNER_LENGTH = settings['bluestein_inner_length']

    core.DEFAULT_DTYPE = _config['precision']['default_dtype']

    # default planners were built with the old settings
    core.clear_cache()

    # Configure logging
    logger.setLevel(level)


def configure(config_dict=None, **kwargs):
    """
    Configure omnifft global settings.

    Args:
        config_dict: Dictionary with configuration settings
        **kwargs: Configuration settings as keyword arguments

    Examples:
        # Configure with a dictionary
        omnifft.configure({
            'planning': {'direct_threshold': 8},
            'precision': {'default_dtype': 'complex64'}
        })

        # Or with keyword arguments
        omnifft.configure(
            planning_bluestein_inner_length='fast',
            logging_level='DEBUG'
        )

    Returns:
        A copy of the current configuration
    """
    previous = get_config()

    if config_dict:
        # Update nested dictionary recursively
        _update_nested_dict(_config, config_dict)

    # Process kwargs (flattened config)
    for key, value in kwargs.items():
        # Handle nested keys like 'planning_direct_threshold'
        section, _, name = key.partition('_')
        if section in _config and name in _config[section]:
            _config[section][name] = value
        else:
            logger.warning(f"Ignoring unknown configuration key: {key}")

    # Apply configuration, keeping the old settings if any value is invalid
    try:
        _apply_configuration()
    except (ValueError, TypeError):
        _config.clear()
        _config.update(previous)
        raise

    return {section: dict(values) for section, values in _config.items()}


def get_config():
    """Get a copy of the current configuration."""
    return {section: dict(values) for section, values in _config.items()}


def _parse_env_value(value: str):
    # Try to convert value to appropriate type
    if value.isdigit():
        return int(value)
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.replace('.', '', 1).isdigit():
        return float(value)
    return value


def _load_env_config():
    """Load configuration from environment variables."""
    # Environment variable prefix
    prefix = "OMNIFFT_"

    settings = {}
    for key, value in os.environ.items():
        if key.startswith(prefix):
            # Remove prefix and convert to lowercase
            settings[key[len(prefix):].lower()] = _parse_env_value(value)

    if settings:
        configure(**settings)


# Initialize logging
def _setup_logging():
    """Set up default logging configuration."""
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, _config['logging']['level']))
        # Don't propagate to root logger
        logger.propagate = False


_setup_logging()

# Load environment config at startup
_load_env_config()
