# setup.py
from setuptools import setup, find_packages

setup(
    name="hahalab",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dateutil",
        "PySide6",
        "matplotlib",
        "reportlab",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-qt",
        ],
    },
    entry_points={
        "console_scripts": [
            "hahalab=hahalab.main:run_wizard",
        ],
        "gui_scripts": [
            "hahalab-gui=hahalab.ui:main",
        ],
    },
)
