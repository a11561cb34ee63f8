"""
Setup script for drill-cli.

drill is a terminal spaced-repetition engine driven by scripts:

1. Adapters - Turn any source text into question/answer cards
2. Methods - Decide which card comes next and how it changes after a response
3. Runs - Resumable learn and test sessions saved after every card

The 'drill' command is the entry point.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="drill-cli",
    version="0.2.0",
    description="Scriptable spaced repetition in the terminal",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    package_data={
        "src.learning": ["builtin/methods/*.rpy", "builtin/adapters/*.rpy"],
    },
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.5.0",
        "pydantic-settings>=2.0.0",
        # Script sandbox
        "RestrictedPython>=7.0",
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
            "drill=src.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition cli education flashcards",
)
