from setuptools import setup, find_namespace_packages

setup(
    name="storyforge",
    version="0.1.0",
    packages=find_namespace_packages(include=["storyforge", "storyforge.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "uvicorn[standard]",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "httpx>=0.27",
        "sqlalchemy[asyncio]>=2.0",
        "asyncpg",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "respx",
            "aiosqlite",
        ],
    },
)
