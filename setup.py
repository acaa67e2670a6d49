import os
from setuptools import setup


base_dir = os.path.dirname(__file__)
about = {}
with open(os.path.join(base_dir, "drivermeta", "__init__.py")) as f:
    exec(f.read(), about)

try:
    long_description = open("README.rst", "r").read()
except Exception:
    long_description = None


setup(
    name="drivermeta",
    version=about["__version__"],
    packages=[
        "drivermeta",
        "drivermeta.asn1",
        "drivermeta.catalog",
    ],
    include_package_data=True,
    license="MIT",
    description="Extract the metadata signed into Windows driver catalog files",
    long_description=long_description,
    python_requires=">=3.9",
    install_requires=[
        "asn1crypto>=1.3,<2",
        "typing_extensions>=4.6.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    keywords=["catalog", "driver", "hardware id", "ctl"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Hardware :: Hardware Drivers",
        "Topic :: Utilities",
    ],
)
