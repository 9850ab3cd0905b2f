"""
Setup script for automode-cli.

Auto Mode is a terminal practice companion that walks a learner through
a fixed Python curriculum. It serves three roles:

1. Adaptive Runs - Streak-based promotion through ordered topics
2. Save Slots - Multiple resumable runs stored as JSON on disk
3. Question Feed - Topic and difficulty requests for a question generator

The 'automode' command is the only entry point.
"""

from setuptools import find_packages, setup

setup(
    name="automode-cli",
    version="1.0.0",
    description="Adaptive practice runs across a Python curriculum, from the terminal",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["automode", "automode.*"]),
    package_data={"automode": ["data/*.json"]},
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "automode=automode.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning practice curriculum cli education adaptive",
)
