"""
Setup script for LCAO-Exciton package
"""

from setuptools import setup, find_packages
import os

# Read the README file
def read_file(filename):
    path = os.path.join(os.path.dirname(__file__), filename)
    if not os.path.exists(path):
        return ''
    with open(path, encoding='utf-8') as f:
        return f.read()

setup(
    name='lcao-exciton',
    version='1.0.0',
    author='Computational Materials Science Team',
    author_email='',
    description='Tight-binding models for exciton calculations from CRYSTAL LCAO output',
    long_description=read_file('README.md'),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Physics',
        'Topic :: Scientific/Engineering :: Chemistry',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.20.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0',
            'pytest-cov>=2.0',
            'scipy>=1.7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'crystal2exciton=lcao_exciton.cli:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
