from setuptools import setup, find_packages

setup(
    name="avalanche-report",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={
        "avalanche_report": ["py.typed", "schemas/*.json"],
        "avalanche_report.database.migrations": ["*.sql"],
    },
    python_requires=">=3.11",
    install_requires=[
        'requests>=2.31.0',
        'urllib3>=2.0.0',
        'PyYAML>=6.0',
        'python-dotenv>=1.0.0',
        'typing_extensions>=4.7.0',
        'pydantic>=2.0.0',
        'fastapi>=0.110.0',
        'uvicorn>=0.27.0',
        'openpyxl>=3.1.0',
        'boto3>=1.28.0',
        'botocore>=1.31.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0.0',
            'httpx>=0.25.0',
        ]
    },
    entry_points={
        'console_scripts': [
            'avalanche-report=avalanche_report.cli:main',
        ]
    }
)
