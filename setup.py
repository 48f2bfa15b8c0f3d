from pathlib import Path
from setuptools import setup, find_packages

ROOT = Path(__file__).parent
README = (ROOT / "README.md").read_text(encoding="utf-8")

setup(
    name="social_scheduler",
    version="0.1.0",
    description="Async Firestore-backed social media post scheduler for agencies",
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    include_package_data=True,           # include py.typed
    package_data={"social_scheduler": ["py.typed"]},
    python_requires=">=3.9",             # asyncio.to_thread
    install_requires=[
        "pydantic>=2.5,<3.0.0",  # camelCase to_camel
        "packaging",
        "google-cloud-firestore>=2.11.0",  # FieldFilter
        "google-api-core",
        "boto3>=1.26",
        "botocore",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio", "httpx"],
        "dev": ["black", "ruff", "pytest", "pytest-asyncio", "httpx"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: AsyncIO",
        "Topic :: Office/Business :: Scheduling",
        "Typing :: Typed",
    ],
    keywords=[
        "firestore",
        "pydantic",
        "scheduler",
        "social media",
        "asyncio",
    ],
)
