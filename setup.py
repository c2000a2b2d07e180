#!/usr/bin/env python
"""
commitgate
==========
.. code:: shell
  $ commitgate install
  $ git commit -m "Update post"
"""

import io
import os
import re

from setuptools import find_packages, setup

_version_re = re.compile(r"__version__\s=\s\"(.*)\"")


install_requires = [
    "appdirs",
    "python-dateutil",
    "PyYAML",
]
tests_requires = [
    "pytest>=4.4.0",
    "flake8",
    "flake8-bugbear",
    "pytest-xdist",
    "pytest-cov",
]

with io.open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

base_dir = os.path.join(os.path.dirname(__file__), "src")

with open(os.path.join(base_dir, "commitgate", "__about__.py"), "r", encoding="utf-8") as f:
    version = _version_re.search(f.read()).group(1)

setup(
    name="commitgate",
    version=version,
    author="commitgate contributors",
    description="A pre-commit hook that keeps a static-site theme repository tidy",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    zip_safe=False,
    license="BSD",
    install_requires=install_requires,
    extras_require={
        "tests": install_requires + tests_requires,
    },
    tests_require=tests_requires,
    include_package_data=True,
    entry_points={"console_scripts": ["commitgate = commitgate.cli:main"]},
    classifiers=[
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Topic :: Software Development",
        "Topic :: Software Development :: Quality Assurance",
        "Topic :: Software Development :: Version Control :: Git",
        "Topic :: Utilities",
        "License :: OSI Approved :: BSD License",
        "Environment :: Console",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
    keywords="git, pre-commit, hook, zola, front matter, minify, static site",
)
