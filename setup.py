# setup.py
from setuptools import setup, find_packages

setup(
    name="ysh",
    version="0.1.0",
    description="An expression-oriented shell language: REPL, script runner and language server",
    packages=find_packages(include=["ysh", "ysh.*", "ysh_lsp", "ysh_lsp.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pygls>=1.1,<2",
        "lsprotocol",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "ysh=ysh.cli:main",
            "ysh-ls=ysh_lsp.server:main",
        ],
    },
    zip_safe=False,
)
