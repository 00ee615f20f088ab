#!/usr/bin/env python3
# encoding: utf-8
"""
Package configuration for chunk-stream.
"""

from setuptools import setup, find_packages

REQUIREMENTS = [
    'boto3',
    'botocore',
    'click',
    'cloup',
    'humanfriendly',
    'loguru',
    'psutil',
    'PyYAML',
    'tabulate',
]

TEST_REQUIREMENTS = [
    'pytest',
    'hypothesis',
]


with open('chunk_stream/version.txt') as f:
    VERSION = f.read().strip()


setup(
    name='chunk-stream',
    version=VERSION,
    description='Bounded-memory chunked reading of files from range-read file stores.',
    license='MIT',
    zip_safe=False,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: MacOS",
        "Operating System :: POSIX :: BSD",
        "Operating System :: POSIX :: Linux",
        "Operating System :: Unix",
        "Environment :: Console",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Filesystems",
        "Typing :: Typed",
    ],
    platforms=['Linux', 'BSD', 'MacOS'],
    python_requires='>=3.9',
    packages=find_packages(exclude=['tests*']),
    package_data={
        '': ['version.txt'],
    },
    entry_points={'console_scripts': [
        'chunk-stream = chunk_stream:main',
    ]},
    install_requires=REQUIREMENTS,
    extras_require={
        'test': TEST_REQUIREMENTS,
    },
)
