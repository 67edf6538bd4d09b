from setuptools import setup, find_packages

setup(
    name="state_machines",
    version="1.0.0",
    packages=find_packages("src"),
    package_dir={"": "src"},
    install_requires=[
        # Core Dependencies
        "pyyaml>=6.0.1",
        "loguru>=0.7.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "dev": [
            # Testing
            "pytest>=7.3.1",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",

            # Development Tools
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.3.0",
            "pylint>=2.17.0",
        ]
    },
    python_requires=">=3.10",
)
