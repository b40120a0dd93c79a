#!/usr/bin/env python
from pathlib import Path
from setuptools import setup, find_packages

long_description = Path("README.md").read_text()

setup(
    name='routegraph',
    version='0.1.0',
    description='routegraph compiles OpenStreetMap extracts into a routable road network: classified roads and points of interest, turn restrictions, directed transitions at road crossings with along-edge distances, admin-enriched POIs and a fixed-zoom tile grid for partitioned loading by a routing engine.',
    long_description=long_description,
    long_description_content_type='text/markdown',

    packages=find_packages(include=['routegraph', 'routegraph.*']),
    python_requires='>=3.9',

    install_requires=[
        'pandas',
        'geopandas',
        'numpy',
        'shapely>=2.0',
        'pyproj',
        'pyarrow',
        'mercantile',
        'osmium'
    ],

    extras_require={
        'test': [
            'pytest'
        ]
    },

    entry_points={
        'console_scripts': ['routegraph=routegraph.cli:main']
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)
