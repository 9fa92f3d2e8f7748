from setuptools import setup, find_packages

setup(
    name="wifi-threat-analyzer",
    version="0.1.0",
    description="Wi-Fi threat detection engine for evil twins, rogue access points and scan-wide attack patterns",
    author="Your Name",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={
        "wifi_threat_analyzer": ["data/*.yaml", "templates/*.j2"],
    },
    include_package_data=True,
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=6.0",
        "jinja2>=3.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black",
            "flake8",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "wifi-threat-analyzer=wifi_threat_analyzer.cli.main:main",
        ],
    },
    python_requires=">=3.8",
)
