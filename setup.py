"""Setup configuration for ChatWarden moderation engine."""

from setuptools import setup, find_packages

setup(
    name="chatwarden",
    version="0.0.1",
    description="Automated content moderation decision engine for real-time chat",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "aiosqlite",
        "PyYAML",
        "python-dotenv",
        "prompt_toolkit",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatwarden=chatwarden.main:main",
        ],
    },
)
