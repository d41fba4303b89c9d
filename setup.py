#!/usr/bin/env python3
"""
Setup script for ecs-deployer.
"""

from setuptools import setup, find_packages

setup(
    name="ecs-deployer",
    version="1.0.0",
    description=(
        "Register Amazon ECS task definitions and roll them out with ECS rolling "
        "updates or CodeDeploy blue/green deployments"
    ),
    python_requires=">=3.9",
    packages=find_packages(include=["ecs_deployer", "ecs_deployer.*"]),
    install_requires=[
        "aiofiles>=23.1",
        "boto3>=1.28",
        "httpx>=0.25",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "ecs-deployer=ecs_deployer.__main__:main",
        ],
    },
)
