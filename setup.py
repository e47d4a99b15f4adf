from setuptools import setup, find_packages

setup(
    name="narrative-engine",
    version="0.1.0",
    description="Constraint-driven interactive narrative engine",
    author="Your Name",
    packages=find_packages(include=["narrative_core", "narrative_core.*", "narrative_engine", "narrative_engine.*"]),
    include_package_data=True,
    install_requires=[
        # Frozen state snapshots and validation
        "pydantic>=2.0.0",

        # Environment variables
        "python-dotenv>=1.0.0",

        # CLI and rich output
        "typer>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "narrative-engine = narrative_engine.__main__:main",
        ],
    },
    python_requires=">=3.10",
    package_dir={"": "."},
)
