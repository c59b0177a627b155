"""
Configuration d'installation pour QoE Analyzer
"""

import sys
from pathlib import Path

from setuptools import find_packages, setup

# Add the package to path to import __version__
sys.path.insert(0, str(Path(__file__).parent / "qoe_analyzer"))
from __version__ import __version__

# Lecture du README pour la description longue
readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")

setup(
    name="qoe-analyzer",
    version=__version__,
    description="Calcul multi-niveaux du score de qualité d'expérience (QoE) voix et données mobiles",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="QoE Analyzer Contributors",
    author_email="",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "qoe_analyzer": ["*.yaml"],
    },
    include_package_data=True,
    install_requires=[
        "pyyaml>=6.0,<7.0",
        "rich>=13.7.0,<14.0",
        "click>=8.1.7,<9.0",
        "numpy>=1.24.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "hypothesis>=6.90.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "qoe_analyzer=qoe_analyzer.cli:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Telecommunications Industry",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: System :: Networking :: Monitoring",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="qoe mobile network voice data scoring drive-test monitoring",
)
