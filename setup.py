"""Package setup for omero_web_client."""

from setuptools import setup, find_packages

setup(
    name="omero-web-client",
    version="1.0.0",
    description="Session-managing client for OMERO web servers",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
        "urllib3>=2.0.0",
    ],
    extras_require={
        "ui": [
            "colorlog>=6.8.0",
        ],
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "omero-web-client=omero_web_client.cli:main",
        ],
    },
)
