from setuptools import setup, find_packages

# Core requirements
INSTALL_REQUIRES = [
    "requests>=2.31.0",
    "python-dotenv>=1.0.0",
    "cachetools>=5.3.2",
    "pybreaker>=1.0.1",
    "structlog>=23.2.0",
    "prometheus-client>=0.17.1",
    "click>=8.0.0",
    "flask>=3.0.0",
    "pydantic>=2.5.0",
    "beautifulsoup4>=4.12.0",
    "python-dateutil>=2.8.2",
    "redis>=5.0.0",
]

# Development requirements
EXTRAS_REQUIRE = {
    "dev": [
        "pytest>=7.4.3",
        "pytest-cov>=4.1.0",
        "pytest-mock>=3.12.0",
        "feedparser>=6.0.0",
        "black>=23.11.0",
        "flake8>=6.1.0",
        "mypy>=1.7.1",
        "isort>=5.12.0",
        "types-requests>=2.31.0.10",
        "types-python-dateutil>=2.8.19.14",
    ],
    "test": [
        "pytest>=7.4.3",
        "pytest-cov>=4.1.0",
        "pytest-mock>=3.12.0",
        "feedparser>=6.0.0",
    ],
}

setup(
    name="feed_syndicator",
    version="1.0.0",
    author="Thaddius Cho",
    author_email="thaddius@thaddius.me",
    description="RSS feeds synthesized from social media posts, with a compressed TTL cache",
    long_description=open("README.md", "r", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "docs*"]),
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary",
    ],
    python_requires=">=3.11",
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    entry_points={
        "console_scripts": [
            "feed-syndicator=feed_syndicator.cli:main",
        ],
    },
)
