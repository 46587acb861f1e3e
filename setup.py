from setuptools import find_packages, setup

"""
# Usage instructions
#
# To install the package
#   'pip install .'
#
# To install with test dependencies
#   'pip install -e ".[test]"'
"""

setup(
    name="litmus",
    version="0.1.0",
    description="Adaptive statistical benchmarking for Python callables",
    python_requires=">=3.11",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "numpy",
        "msgspec>=0.18",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "litmus=litmus.cli:main",
        ],
    },
)
