from setuptools import find_packages, setup

setup(
    name='courier-lfs',
    packages=find_packages(exclude=['tests', 'tests.*']),
    version=open('VERSION').read().strip(),
    description='A Git LFS custom transfer agent in Python with support for pluggable storage backends',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.10',
    install_requires=[
        'boto3',
        'marshmallow>=3.18',
        'pydantic>=2',
        'pydantic-settings>=2',
        'python-dotenv',
        'pyyaml',
        'requests',
    ],
    extras_require={
        'test': [
            'pytest',
            'responses',
        ],
    },
    entry_points={
        'console_scripts': [
            'courier=courier.app:_main',
        ],
    },
    include_package_data=True
)
