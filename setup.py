"""
Установочный скрипт для пула загрузки.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Чтение README
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8')

# Чтение requirements
requirements = []
requirements_file = this_directory / "requirements.txt"
if requirements_file.exists():
    with open(requirements_file, 'r', encoding='utf-8') as f:
        requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name="fetch-pool",
    version="1.0.0",
    author="Fetch Pool Team",
    description="Массовая загрузка списка идентификаторов через пул воркеров с ограниченной конкурентностью и метриками Prometheus",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Monitoring",
        "Topic :: System :: Networking",
    ],
    python_requires=">=3.8",
    install_requires=requirements or [
        "click>=8.1.0",
        "prometheus-client>=0.15.0",
        "psutil>=5.9.0",
        "pyyaml>=6.0",
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=1.0.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fetch-pool=fetch_pool.cli:main",
        ],
    },
    keywords="worker pool bounded concurrency backpressure prometheus http bulk fetch",
)
