from setuptools import setup, find_packages

setup(
    name="workflow-server",
    version="0.1.0",
    description="HTTP host for a workflow engine runtime",
    author="Workflow Server Team",
    packages=find_packages(),
    install_requires=[
        "pydantic>=2.0.0",
        "starlette>=0.27.0",
        "uvicorn>=0.23.0",
        "python-multipart>=0.0.6",
        "click>=8.0.0",
        "aiohttp>=3.8.0",
        "sqlalchemy>=2.0.0",
    ],
    extras_require={
        "mongodb": [
            "pymongo>=4.0.0",
        ],
        "ravendb": [
            "ravendb>=5.2.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.24.0",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "workflow-server=server.main:main",
        ],
    },
    python_requires=">=3.9",
)
