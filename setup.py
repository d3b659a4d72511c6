import os

from setuptools import find_packages, setup

VERSION = '0.1.0'


def read_readme():
    try:
        with open(os.path.join(os.path.dirname(__file__), 'README.md')) as fh:
            return fh.read()
    except OSError:
        return ''


# HSTLIB is a dependency for pysam.
# The cram file libraries fail for some OS versions and splitsv does not use cram files so we disable these options
os.environ['HTSLIB_CONFIGURE_OPTIONS'] = '--disable-lzma --disable-bz2 --disable-libcurl'


TEST_REQS = [
    'pytest',
    'pytest-cov',
]


INSTALL_REQS = [
    'mavis_config>=1.1.0',
    'numpy>=1.13.1',
    'pandas>=1.1',
    'pysam>=0.15.4',
    'shortuuid>=0.5.0',
    'snakemake>=6.1.1',
]

DEPLOY_REQS = ['twine', 'wheel']


setup(
    name='splitsv',
    version='{}'.format(VERSION),
    packages=find_packages(where='src', exclude=['tests']),
    package_dir={'': 'src'},
    package_data={'splitsv': ['schemas/*.json']},
    description='Structural variant breakpoint detection from split read alignments',
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    install_requires=INSTALL_REQS,
    extras_require={
        'test': TEST_REQS,
        'dev': ['black', 'flake8'] + TEST_REQS + DEPLOY_REQS,
        'deploy': DEPLOY_REQS,
    },
    tests_require=TEST_REQS,
    setup_requires=['pip>=9.0.0', 'setuptools>=36.0.0'],
    python_requires='>=3.7',
    test_suite='tests',
    entry_points={
        'console_scripts': [
            'splitsv = splitsv.main:main',
        ]
    },
)
