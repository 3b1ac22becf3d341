"""
fescaffold - FastEndpoints scaffolding from Entity Framework models
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="fescaffold",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="⚡ Scaffold FastEndpoints features from your EF Core entities",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "tree-sitter>=0.23",
        "tree-sitter-c-sharp>=0.23",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fescaffold=fescaffold.cli:main",
        ],
    },
    keywords="fastendpoints, entity-framework, scaffolding, code-generator, csharp, dotnet",
)
