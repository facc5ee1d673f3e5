import platform
import re
import sys
from pathlib import Path

from setuptools import find_packages, setup


def get_requires():
    requires = [
        "redis>=4.2.0",
        "async-timeout",
    ]
    if platform.python_implementation() == "CPython":
        requires.append("hiredis")
    return requires


if sys.version_info < (3, 8):
    raise RuntimeError("aioredis_trib doesn't support Python version prior 3.8")


def get_version() -> str:
    content = Path("src/aioredis_trib/_version.py").read_text()
    m = re.search(r'^\s*__version__\s*\=\s*[\'"]([^\'""]+)[\'"]', content, re.M)
    assert m
    return m.group(1)


def get_description() -> str:
    texts = [
        Path("README.md").read_text(encoding="utf-8"),
        Path("CHANGES.md").read_text(encoding="utf-8"),
    ]
    return "\n\n".join(texts)


setup(
    name="aioredis_trib",
    version=get_version(),
    description="Redis Cluster node handle for cluster management tools",
    long_description=get_description(),
    long_description_content_type="text/markdown",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: POSIX",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Topic :: Software Development :: Libraries",
        "Topic :: System :: Clustering",
        "Framework :: AsyncIO",
    ],
    platforms=["POSIX"],
    license="MIT",
    package_dir={"": "src"},
    packages=find_packages(
        "src",
        include=["aioredis_trib", "aioredis_trib.*"],
    ),
    package_data={"aioredis_trib": ["py.typed"]},
    install_requires=get_requires(),
    python_requires=">=3.8",
    include_package_data=True,
    zip_safe=False,
    extras_require={
        "devel": [
            "flake8",
            "mypy",
            "isort>=5.0.0, <6.0.0",
            "mock>=4.0.0",
            "black",
            "coverage",
            "pytest",
            "pytest-cov",
            "pytest-mock",
            "pytest-asyncio",
        ],
    },
)
