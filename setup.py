#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="quadapprox",
    version="0.1.0",
    description="Piecewise linear mixed-integer approximations of x² for linopy",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["test"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "pandas",
        "xarray",
        "linopy>=0.5.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "highspy",
        ],
        "solvers": [
            "gurobipy",
            "highspy",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
    ],
)
