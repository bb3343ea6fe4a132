from setuptools import setup, find_packages

# Read requirements from requirements.txt
with open('requirements.txt', 'r') as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name="delivery-ledger",
    version="0.3.0",
    description="Delivery Ledger - brokerage delivery order consolidation",
    author="Delivery Ledger Team",
    packages=find_packages(include=['delivery_ledger', 'delivery_ledger.*']),
    install_requires=requirements,
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0',
            'pytest-cov>=4.1.0',
            'black>=23.9.0',
            'ruff>=0.1.0'
        ]
    },
    entry_points={
        'console_scripts': [
            'dlv=delivery_ledger.cli:main',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
    ],
)
