"""setuptools setup for Pomagotchi.

Install for development:
    pip install -e ".[test]"
    python -m pomagotchi run --minutes 25
"""

from setuptools import setup, find_packages

setup(
    name="Pomagotchi",
    version="1.0.0",
    description="Pomodoro timer that raises a virtual creature.",
    packages=find_packages(include=["pomagotchi", "pomagotchi.*"]),
    py_modules=["main"],
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.5",
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "pomagotchi=pomagotchi.__main__:main",
        ],
    },
)
