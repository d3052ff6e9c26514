"""Setup script for crontinject."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the long description from README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="crontinject",
    version="0.1.0",
    description="Triggerable asyncio scheduling engine with cron, interval and rule-based injection",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "croniter>=2.0.0",
        "jmespath>=1.0.0",
    ],
    extras_require={
        "fastapi": [
            "fastapi>=0.100.0",
            "httpx>=0.24.0",
            "uvicorn>=0.23.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
            "fastapi>=0.100.0",
            "httpx>=0.24.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
            "black>=23.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Framework :: AsyncIO",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Typing :: Typed",
    ],
    keywords=[
        "async",
        "asyncio",
        "cron",
        "scheduler",
        "inject",
        "timer",
    ],
    license="Apache-2.0",
    zip_safe=False,
)
