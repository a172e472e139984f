"""
Setup script for the ai-artifact-pipeline project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="ai-artifact-pipeline",
    version="0.1.0",
    packages=find_packages(include=["src", "src.*"]),
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0",
        "pydantic>=2.5",
        "tenacity>=8.2",
        "openai>=1.30",
        "langchain-core>=0.2",
        "langchain-openai>=0.1",
        "json-repair>=0.25",
        "pymongo>=4.6",
        "httpx>=0.27",
        "beautifulsoup4>=4.12",
        "playwright>=1.40",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
