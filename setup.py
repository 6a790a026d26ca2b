from setuptools import setup, find_packages

setup(
    name="txresolve",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp",
        "click",
        "prometheus_client",
        "pydantic>=2.0",
        "pydantic-settings",
        "python-bitcoinlib",
        "redis>=5.0.1",
        "structlog"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio"
        ],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "txresolve=resolver.cli:cli",
        ],
    }
)
