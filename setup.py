from setuptools import setup, find_packages

# Read requirements from requirements.txt
with open('requirements.txt') as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith('#')]

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="spritesheet-editor",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "spritesheet-editor=spritesheet_editor.cli:main",
        ],
    },
    author="Jarno Elonen",
    author_email="elonen@iki.fi",
    description="Slice, pixel-edit and re-export grid-packed sprite animations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    keywords="pixel-art, sprite, spritesheet, animation, editor",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Multimedia :: Graphics",
        "Development Status :: 4 - Beta",
    ],
    python_requires=">=3.11",
)
