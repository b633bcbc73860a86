#!/usr/bin/env python3
"""
Setup script for Check in with your probation officer

Install with:
    pip install -e .

Or with test dependencies:
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

requirements = [
    "fastapi>=0.110.0",
    "starlette>=0.37.0",
    "uvicorn[standard]>=0.27.0",
    "pydantic>=2.6.0",
    "pydantic-settings>=2.1.0",
    "httpx>=0.26.0",
    "jinja2>=3.1.3",
    "itsdangerous>=2.1.2",
    "python-multipart>=0.0.9",
    "slowapi>=0.1.9",
    "PyYAML>=6.0.1",
    "redis>=5.0.1",
    "geoip2>=4.8.0",
    "maxminddb>=2.5.0",
    "boto3>=1.34.0",
    "botocore>=1.34.0",
]

test_requirements = [
    "pytest>=7.4.0",
    "pytest-asyncio>=0.23.0",
    "faker>=22.0.0",
    "fakeredis>=2.21.0",
    "httpx>=0.26.0",
]

setup(
    name="checkin-probation",
    version="1.0.0",
    description="Citizen facing pages for online probation check ins",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "checkin": [
            "templates/*.html",
            "templates/**/*.html",
            "static/**/*",
        ],
        "checkin.content": [
            "locales/*.yml",
            "pages/*/*.html",
        ],
    },
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": test_requirements,
        "dev": test_requirements + [
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "checkin-server=checkin.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    ],
    keywords="probation check-in govuk fastapi",
)
