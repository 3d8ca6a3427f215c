from setuptools import find_packages, setup
import os

name = "systemcheck"
pysrc_dir = "."
packages = [p for p in find_packages(pysrc_dir) if not p.startswith("tests")]
package_dir = {"": pysrc_dir}

# Read version from __version__.py
version_file = os.path.join(os.path.dirname(__file__), "systemcheck", "__version__.py")
with open(version_file) as f:
    exec(f.read())

dev_packages = [
    "black",
    "isort",
    "pytest",
]

required_packages = [
    "psutil",
    "python-dotenv",
]

setup(
    name=name,
    version=__version__,
    description="Report the CPU and memory actually available to a process on Linux hosts and containers",
    packages=packages,
    package_dir=package_dir,
    python_requires=">=3.11",
    install_requires=required_packages,
    extras_require={
        "dev": dev_packages,
    },
    entry_points={
        "console_scripts": [
            "systemcheck=systemcheck.cli:main",
        ],
    },
    zip_safe=False,
)
