from setuptools import setup, find_packages

setup(
    name="campusfeed",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.28",
        "pyyaml>=6.0",
        "flask>=2.2",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "campusfeed=campusfeed.cli:main",
        ],
    },
)
