"""
Setup script for suitability_analysis package
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding='utf-8')
else:
    long_description = "Marine aquaculture suitability analysis by maritime zone"

setup(
    name="suitability_analysis",
    version="0.1.0",
    description="Species suitability mapping from environmental rasters, summarized by maritime zone",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Suitability Analysis Project",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "pandas>=1.3",
        "geopandas>=1.0",
        "matplotlib>=3.4",
        "shapely>=1.8",
        "pyproj>=3.0",
        "rasterio>=1.3",
        "affine<3",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: GIS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="aquaculture suitability raster GIS",
)
