"""setuptools build script for Hypothesis Digest.

Install for development:
    pip install -e ".[test]"
Run:
    hypothesis-digest
"""

from setuptools import setup

MODULES = [
    "app",
    "collector",
    "config",
    "hypotheses",
    "notifier",
    "pipeline",
    "publisher",
    "ranking",
    "relevance",
    "store",
]

setup(
    name="hypothesis-digest",
    version="0.1.0",
    description="Daily RSS digest of scored business hypotheses",
    py_modules=MODULES,
    python_requires=">=3.8",
    install_requires=[
        "feedparser",
        "requests",
        "readability-lxml",
        "lxml_html_clean",
        "beautifulsoup4",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "hypothesis-digest=app:main",
        ],
    },
)
