from setuptools import setup, find_packages

setup(
    name='bundlefs',
    version='0.1.0',
    description='Extract files and directory trees from read-only filesystems to temporary paths',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.10',
    install_requires=[
        'platformdirs',
        'PyYAML',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
)
