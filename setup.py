from setuptools import setup, find_packages

setup(
    name="ltp_levels_api",
    version="0.1.0",
    packages=find_packages(where="src"),
    py_modules=["main", "models", "config"],
    package_dir={"": "src"},
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "pydantic-settings",
        "pandas",
        "numpy",
        "yfinance",
        "python-dateutil",
        "scipy",
        "mangum",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
