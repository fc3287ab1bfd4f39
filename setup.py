#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Ebook Export - Setup Configuration
PDF / DOCX export pipeline for multi-chapter rich-text ebooks.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip()
        for line in requirements_path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="ebook-export",
    version="1.0.0",
    description="Export multi-chapter rich-text ebooks to PDF and DOCX with a cover page",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Ebook Export Team",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        # Development dependencies
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
            "pypdf>=3.17.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ebook-export=ebook_export.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Text Processing :: Markup :: HTML",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="ebook export pdf docx reportlab python-docx",
)
