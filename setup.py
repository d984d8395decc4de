from setuptools import setup, find_packages

setup(
    name="doc-quiz-toolkit",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "openpyxl>=3.0",
        "python-docx>=0.8",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "doc-quiz=doc_quiz_toolkit.cli:main",
        ],
    },
)
