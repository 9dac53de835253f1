"""
Setup script for dataroom package.
"""

from setuptools import setup, find_packages

setup(
    name="dataroom",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",

        # Web server
        "fastapi>=0.70.0",
        "uvicorn>=0.15.0",
        "pydantic>=1.8.0",

        # LLM endpoint client
        "requests>=2.25.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "httpx>=0.23.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'dataroom=dataroom.__main__:main',
        ],
    },
    author="Dataroom Team",
    description="Dataset workspace with statistics, regression, k-means and an LLM proxy",
    keywords="dataset, statistics, regression, clustering, kmeans",
    python_requires=">=3.8",
)
