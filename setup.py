from setuptools import setup, find_packages

setup(
    name="moveflow-mcp",
    version="0.2.0",
    description="MCP server for MoveFlow payment streams on the Aptos blockchain",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="MoveFlow Community",
    packages=find_packages(include=["moveflow", "moveflow_mcp", "moveflow_mcp.*"]),
    install_requires=[
        "mcp>=1.9.0,<2",
        "httpx>=0.27.0",
        "aptos-sdk>=0.10.0",
        "rich>=10.0.0",
        "python-dotenv>=0.19.0",
        "requests>=2.26.0",
        "pandas>=1.3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    entry_points={
        "console_scripts": [
            "moveflow-mcp=moveflow_mcp.run:main",
        ],
    },
)
