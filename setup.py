from setuptools import setup, find_namespace_packages

setup(
    name="inventory-service",
    version="0.1.0",
    packages=find_namespace_packages(include=["inventory", "inventory.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "uvicorn[standard]",
        "pydantic>=2.5",
        "pydantic-settings>=2.2",
        "sqlalchemy[asyncio]>=2.0",
        "asyncpg",
        "aiosqlite",
        "redis>=5.0",
        "PyJWT>=2.8",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
)
