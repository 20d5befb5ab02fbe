from setuptools import setup

setup(name="jme-engine",
    version="0.1.0",
    description="Tokenizer, parser, evaluator, simplifier and answer comparator for JME expressions",
    license='Apache-2.0',
    python_requires=">=3.10",
    install_requires=[
        "ply",
        "numpy"
    ],
    py_modules=[
        "errors",
        "lexer",
        "parser",
        "type_checker",
        "runtime",
        "display",
        "simplifier",
        "library",
        "variables",
        "compare",
        "execute",
    ],
    packages=["utils"],
    entry_points={
        "console_scripts": [
            "jme=execute:main",
        ],
    },
    extras_require={
        "dev": ["pytest>=7"],
    },
)
