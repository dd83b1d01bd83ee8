#!/usr/bin/env python3

# python setup.py sdist --format=zip,gztar

import runpy
import sys

from setuptools import setup

if sys.version_info[:3] < (3, 9, 0):
    sys.exit("Error: hdaccounts requires Python version >= 3.9.0...")

with open('contrib/requirements/requirements.txt') as f:
    requirements = f.read().splitlines()

with open('contrib/requirements/requirements-test.txt') as f:
    requirements_test = f.read().splitlines()

version = runpy.run_path('hdaccounts/version.py')

setup(
    name="hdaccounts",
    version=version['PACKAGE_VERSION'],
    python_requires='>=3.9',
    install_requires=requirements,
    extras_require={
        'test': requirements_test,
    },
    packages=[
        'hdaccounts',
        'hdaccounts.tests',
    ],
    description="HD wallet account, chain and address bookkeeping for Bitcoin SV",
    license="MIT Licence",
    long_description="""Gap-limit address margins, balances and account scoped coin selection
for BIP32 hierarchical deterministic wallets.""",
)
