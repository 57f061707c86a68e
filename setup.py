"""
Setup script for lattice_flow package.
"""

from setuptools import setup, find_packages

setup(
    name="lattice_flow",
    version="0.1.0",
    description="D2Q9 Lattice Boltzmann fluid simulation core",
    author="Andrey",
    packages=find_packages(include=["lattice_flow", "lattice_flow.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "numba>=0.56",
        "scipy>=1.7",
    ],
    extras_require={
        "plot": ["matplotlib>=3.5"],
        "dev": ["pytest>=7.0", "matplotlib>=3.5", "black", "flake8"],
    },
)
