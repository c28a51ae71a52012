from setuptools import setup, find_packages

setup(
    name="udpduel",
    version="1.0.0",
    description="UDP rendezvous-and-relay server for two-player real-time games",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "udpduel-server = udpduel.server:main",
            "udpduel-client = udpduel.client:main",
        ],
    },
    python_requires=">=3.10",
)
