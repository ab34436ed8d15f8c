#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name="pixeldedup",
    version="1.0.0",
    description="Near-duplicate image finder based on perceptual fingerprints",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.19.0",
        "Pillow>=9.1.0",
        "imagehash>=4.2.0",
        "tqdm>=4.50.0",
        "colorama>=0.4.6",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'pixeldedup=pixeldedup.dedup_main:main',
        ],
    },
    python_requires='>=3.8',
)
