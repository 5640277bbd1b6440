from setuptools import find_packages, setup

from src.bddhooks.constants import VERSION

DESCRIPTION = """Hook orchestration and fixture injection for BDD scenarios (bddhooks)
Declare before/after hooks anywhere, gate them with tag expressions, give them
timeouts, and let them request the fixtures they need by parameter name.

Decorator steps let page-object classes implement steps as plain methods,
dispatched against the single fixture providing the page object.
"""

setup(
    name="bddhooks",
    version=VERSION,
    packages=find_packages(where="src", exclude=["__pycache__", "*.__pycache__*"]),
    package_dir={"": "src"},
    include_package_data=True,
    install_requires=[
        "behave<2.0,>=1.3.3",
        "cucumber-tag-expressions>=4.1,<7.0",
        "python-dotenv>=1.0,<2.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.3,<9.0",
            "pytest-mock>=3.14,<4.0",
            "pytest-asyncio>=0.24,<2.0",
            "pytest-dependency>=0.6,<1.0",
        ],
    },
    description=DESCRIPTION,
    long_description=DESCRIPTION,
    license="MIT License",
    python_requires=">=3.8",
    classifiers=["Programming Language :: Python :: 3.8"],
)
