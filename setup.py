from setuptools import setup, find_packages

setup(
    name="omnifft",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "numpy>=1.17.0",
        "scipy>=1.4.0",
        "pyfftw>=0.12.0",
    ],
    extras_require={
        "dev": ["pytest", "pytest-cov", "black", "flake8"],
        "bench": ["matplotlib", "psutil>=5.6.0"],
    },
    python_requires=">=3.8",
    author="omnifft contributors",
    description="Mixed-algorithm FFT planning for every transform length",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Scientific/Engineering",
    ],
)
