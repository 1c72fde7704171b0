#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='django-ldapsession',
    version='1.0.0',
    description='Blocking and asynchronous LDAP sessions with simple and SASL binds',
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['django', 'ldap', 'sasl'],
    author="Caltech IMSS ADS",
    author_email="imss-ads-staff@caltech.edu",
    url='https://github.com/caltechads/django-ldapsession',
    packages=find_packages(exclude=['bin', 'doc']),
    include_package_data=True,
    install_requires=[
        'Django',
        'ldap_filter',
        'pyasn1',
        'python-ldap',
    ],
    extras_require={
        'test': [
            'pytest',
            'python-ldap-faker',
        ],
        'docs': [
            'sphinx',
            'sphinx_rtd_theme',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3"
    ],
)
