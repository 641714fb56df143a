import os
from setuptools import setup, find_packages

this_directory = os.path.abspath(os.path.dirname(__file__))
try:
    with open(os.path.join(this_directory, "README.md"), encoding="utf-8") as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "Allowlist-based HTML fragment sanitizer"

setup(
    name="markupguard",
    version="0.1.0",
    description="Allowlist-based sanitizer that reduces untrusted HTML fragments to safe markup",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "beautifulsoup4>=4.12.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "html5lib": ["html5lib>=1.1"],
        "test": [
            "pytest>=7.4.0",
            "html5lib>=1.1",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Security",
        "Topic :: Text Processing :: Markup :: HTML",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.8",
)
