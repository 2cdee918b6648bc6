"""Setup script for the Chirpwire package."""

from setuptools import setup, find_packages

requires = ["click>=8.0", "httpx>=0.27", "trio>=0.22"]

__version__ = None
exec(open("src/chirpwire/version.py").read())

setup(
    name="chirpwire",
    version=__version__,
    author="Chirpwire contributors",
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["test"]),
    include_package_data=True,
    install_requires=requires,
    extras_require={"test": ["pytest>=7.0"]},
    python_requires=">=3.9",
)
