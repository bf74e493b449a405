"""Setup script for srag-dashboard-dp package following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="srag-dashboard-dp",
    version="1.0.0",
    description="SRAG Dashboard Data Product - SIVEP-Gripe ingestion and epidemiological indicators",
    author="SRAG Dashboard Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["srag_dp*", "shared*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "pydantic",
        "sqlalchemy>=2.0,<2.1",
        "psycopg2-binary",
        "alembic",
        "pandas",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-cov",
            "httpx",
        ],
        "dev": [
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "srag-seed=srag_dp.entrypoints.seed:main",
            "srag-api=srag_dp.entrypoints.srag_api:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
)
