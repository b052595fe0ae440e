from setuptools import find_packages, setup

version = None
with open("s3_multipart/__init__.py", encoding="utf-8") as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.strip().split()[-1][1:-1]
            break
assert version is not None, "Could not find version string"

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="s3-multipart",
    version=version,
    description="Signed, cancellable S3 multipart uploads with short-lived credentials",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "examples*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "aiofiles",
        "aiohttp>=3.9",
        "multidict",
        "yarl",
        "pydantic>=2",
        "pyyaml>=6.0.1",
        "tqdm>=4.66.0",
        "typer",
    ],
    extras_require={
        "dev": [
            "pytest>=6.2.5",
            "pytest-cov>=2.12.1",
            "pytest-asyncio>=0.15.1",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "s3-multipart = s3_multipart.cli.app:main",
        ]
    },
    keywords="s3 multipart upload sigv4 aws minio",
)
