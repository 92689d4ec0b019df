"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/vendorbuild/vendorbuild"
KEYWORDS = "build vendoring native dependencies autotools cmake zlib-ng libcaca cffi bindings"
HERE = os.path.dirname(os.path.abspath(__file__))

INSTALL_REQUIRES = [
    "requests>=2.28",
    "tqdm>=4.64",
    "psutil>=5.9",
    "cffi>=1.15",
    "pycparser>=2.21",
]

EXTRAS_REQUIRE = {
    "test": ["pytest>=7.0"],
}


if __name__ == "__main__":
    setup(
        name="vendorbuild",
        version="0.1.0",
        description="Reproducible vendored builds of native dependencies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,
        entry_points={
            "console_scripts": [
                "vendorbuild=vendorbuild.cli:main",
            ],
        },
        include_package_data=True)
