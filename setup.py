#!/usr/bin/env python3

# Copyright (c) 2009 Giampaolo Rodola'. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Find the PIDs of running processes by name."""

import ast
import os
import sys

from setuptools import setup


HERE = os.path.abspath(os.path.dirname(__file__))

# Test deps, installable via `pip install .[test]`.
TEST_DEPS = [
    "pytest",
    "pytest-instafail",
    "pytest-xdist",
    "setuptools",
]

# Development deps, installable via `pip install .[dev]`.
DEV_DEPS = TEST_DEPS + [
    "black",
    "check-manifest",
    "coverage",
    "pylint",
    "pytest-cov",
    "ruff",
    "toml-sort",
    "twine",
    "virtualenv",
    "vulture",
    "wheel",
]


def get_version():
    INIT = os.path.join(HERE, 'pidof/__init__.py')
    with open(INIT) as f:
        for line in f:
            if line.startswith('__version__'):
                ret = ast.literal_eval(line.strip().split(' = ')[1])
                assert ret.count('.') == 2, ret
                for num in ret.split('.'):
                    assert num.isdigit(), ret
                return ret
        msg = "couldn't find version string"
        raise ValueError(msg)


VERSION = get_version()


if not sys.platform.startswith(("linux", "darwin")):
    sys.exit("platform {} is not supported".format(sys.platform))


def main():
    kwargs = dict(
        name='pidof',
        version=VERSION,
        description="Find the PIDs of running processes by name.",
        # fmt: off
        keywords=[
            'ps', 'kill', 'pidof', 'pgrep', 'killall', 'process', 'proc',
            'sysctl',
        ],
        # fmt: on
        author='Giampaolo Rodola',
        author_email='g.rodola@gmail.com',
        platforms='Platform Independent',
        license='BSD-3-Clause',
        packages=['pidof', 'pidof.tests'],
        entry_points={
            'console_scripts': ['pidof = pidof._cli:main'],
        },
        classifiers=[
            'Development Status :: 5 - Production/Stable',
            'Environment :: Console',
            'Intended Audience :: Developers',
            'Intended Audience :: System Administrators',
            'Operating System :: MacOS :: MacOS X',
            'Operating System :: POSIX :: Linux',
            'Operating System :: POSIX',
            'Programming Language :: Python :: 3',
            'Programming Language :: Python :: Implementation :: CPython',
            'Programming Language :: Python :: Implementation :: PyPy',
            'Programming Language :: Python',
            'Topic :: Software Development :: Libraries :: Python Modules',
            'Topic :: System :: Monitoring',
            'Topic :: System :: Operating System',
            'Topic :: System :: Systems Administration',
            'Topic :: Utilities',
        ],
        python_requires=">=3.7",
        extras_require={
            "dev": DEV_DEPS,
            "test": TEST_DEPS,
        },
        zip_safe=False,
    )
    setup(**kwargs)


if __name__ == '__main__':
    main()
