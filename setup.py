#!/usr/bin/env python
from setuptools import setup
setup(
    name='remoteresources',
    version='1.2.0',
    description='REST resources as Python objects',
    author='Six Apart Ltd.',
    author_email='python@sixapart.com',

    packages=['remoteresources'],
    provides=['remoteresources'],
    python_requires='>=3.7',
    install_requires=[
        'simplejson>=2.0.0',
        'httplib2>=0.19.0',
        'blinker>=1.4',
        'inflection>=0.5.0',
        'PySocks>=1.7.0',
    ],
    extras_require={
        'test': ['pytest', 'mock'],
    },
)
