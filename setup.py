from setuptools import setup, find_packages

setup(
    name="ordermonitor",
    version="0.1.0",
    packages=find_packages(include=["ordermonitor", "ordermonitor.*"]),
    install_requires=[
        "pandas",
        "pyyaml",
        "pydantic>=2",
        "structlog",
        "prometheus-client",
        "typer",
        "fastapi",
        "uvicorn",
        "httpx",
        "aiosqlite",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["ordermonitor=ordermonitor.cli:main"],
    },
    author="Akshat Joshi",
    author_email="joshiakshat0511@gmail.com",
    description="Order-system error-rate and performance monitoring with alert fan-out",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    python_requires=">=3.9",
)
