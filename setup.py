#!/usr/bin/env python3
"""
Setup script for Inkwell - blog content pipeline.
"""

from setuptools import setup, find_packages

# Project metadata and dependencies are defined in pyproject.toml

setup(
    packages=find_packages(include=['inkwell_pkg', 'inkwell_pkg.*']),
    package_data={
        'inkwell_pkg': [
            'templates/*.html',
        ],
    },
    include_package_data=True,
)
