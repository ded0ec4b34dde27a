"""Setup script for transfer-tracker package following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="transfer-tracker",
    version="1.0.0",
    description="Transfer Tracker - Event-sourced transfer status tracking with anomaly detection",
    author="Transfer Tracker Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["shared*", "transfers*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "pydantic>=2",
        "sqlalchemy>=2",
        "psycopg2-binary",
        "redis",
        "tenacity",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
            "fakeredis",
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
            "transfer-tracker-api=transfers.entrypoints.transfer_api:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Topic :: Office/Business :: Financial",
    ],
)
