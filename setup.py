"""
LKB Gazetteer Setup Script

Install with: pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name='lkb-gazetteer',
    version='0.1.0',
    description='Lexical knowledge base gazetteer - feed resolution, entity streaming and semantic enrichment',
    author='LKB Gazetteer Team',
    packages=find_packages(include=['lkbgaz', 'lkbgaz.*']),
    package_data={
        'lkbgaz': ['config/*.yaml'],
    },
    install_requires=[
        'pydantic>=2.5.0',
        'pyyaml>=6.0.1',
        'requests>=2.31.0',
        'click>=8.1.0',
        'structlog>=23.1.0',
        'rdflib>=7.0.0',
        'pyparsing>=3.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'lkbgaz=lkbgaz.cli:cli',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Text Processing :: Linguistic',
    ],
)
