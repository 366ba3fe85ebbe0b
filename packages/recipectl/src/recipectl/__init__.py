__version__ = "0.1.0"

__all__ = [
    "__version__",
    "cli",
    "configs",
    "contracts",
    "core",
    "graph",
    "make",
    "recipes",
]
