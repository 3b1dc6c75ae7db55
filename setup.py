"""
BrandMonitor Setup Configuration
Brand Visibility Monitoring across AI Text-Generation Platforms
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="brandmonitor",
    version="0.3.0",
    author="BrandMonitor Team",
    description="Brand visibility monitoring across AI text-generation platforms",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["brandmonitor", "brandmonitor.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        # Core dependencies
        "click>=8.1.0",
        "rich>=13.7.0",
        "pydantic>=2.5.0",
        "python-dotenv>=1.0.0",

        # Platform APIs
        "google-generativeai>=0.3.0",
        "httpx>=0.25.0",

        # Utilities
        "tenacity>=8.2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "black>=23.9.0",
            "flake8>=6.1.0",
            "mypy>=1.6.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "brandmonitor=brandmonitor.cli:main",
        ],
    },
    include_package_data=True,
)
