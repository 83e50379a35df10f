from setuptools import find_packages, setup

setup(
    name="pagerduty-rest",
    version="0.1.0",
    license="Apache License 2.0",

    python_requires=">=3.12",
    description="Async client for the PagerDuty REST API v2 with automatic "
                "pagination, retries and metrics hooks.",

    packages=find_packages(exclude=('tests', 'tests.*')),

    install_requires=[
        "Click>=8.1,<9.0",
        "httpx>=0.27,<1.0",
        "stamina>=24.2",
        "structlog>=24.1",
        "pydantic>=2.6,<3.0",
        "pydantic-settings>=2.2,<3.0",
        "prometheus-client>=0.20",
        "python-json-logger>=3.1",
    ],

    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "pytest-httpserver>=1.0",
            "pytest-mock>=3.12",
        ],
    },

    test_suite="tests",

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.12',
    ],
    entry_points={
        'console_scripts': [
            'pagerduty-rest = pagerduty_rest.cli:root',
        ],
    },
)
