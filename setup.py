import os

import setuptools

# Make sure that README.md decodes in environments that use the C locale
# (which implies ASCII), by explicitly giving the encoding.
with open(os.path.join(os.path.dirname(__file__), "README.md"), encoding="utf-8") as f:
    long_description = f.read()


setuptools.setup(
    name="kilo-viewer",
    # MAJOR.MINOR.PATCH, per http://semver.org
    version="0.0.1",
    description="A minimalist raw-mode terminal text viewer",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="kilo, terminal, viewer, vt100, termios",
    license="ISC",
    py_modules=(
        "kilo",
        "kiloterm",
    ),
    entry_points={
        "console_scripts": ("kilo = kilo:_main",)
    },
    extras_require={
        "test": ("pytest",),
    },
    python_requires=">=3.6",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Topic :: Text Editors",
        "Topic :: Terminals",
        "License :: OSI Approved :: ISC License (ISCL)",
        # termios is Unix-only
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.6",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: Implementation :: PyPy",
    ],
)
