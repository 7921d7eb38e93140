from setuptools import setup, find_packages

setup(
    name="speak2image",
    version="0.1.0",
    description="Interactive installation that turns a visitor's words into an image",
    author="",
    python_requires=">=3.8",
    packages=find_packages(include=["speak2image", "speak2image.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "aiohttp>=3.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "speak2image=speak2image.main:main",
        ],
    },
)
