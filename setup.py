"""Setup script for ghflow package."""

from setuptools import find_packages, setup

setup(
    name="ghflow",
    version="0.1.0",
    description="Terminal dashboard for GitHub Actions workflow runs",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "ghflow.dashboard": ["styles/*.tcss"],
    },
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "textual>=0.47",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "ghflow=ghflow.dashboard.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console :: Curses",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
