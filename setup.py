from pathlib import Path
from setuptools import find_packages, setup


ROOT = Path(__file__).parent


def read_version(root: Path) -> str:
    """Return ``__version__`` from the package without importing it."""
    for line in (root / "screeps_init" / "__init__.py").read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip("\"'")
    raise RuntimeError("screeps_init.__version__ not found")


setup(
    name="screeps-init",
    version=read_version(ROOT),
    description="Container entrypoint that brings up Screeps server dependencies",
    packages=find_packages(include=["screeps_init", "screeps_init.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",
        "psutil>=5.9",
        "rich>=13.0",
    ],
    extras_require={"test": ["pytest>=7.0"]},
    entry_points={"console_scripts": ["screeps-init=screeps_init.main:main"]},
)
