from setuptools import setup, find_packages

setup(
    name='bms-server',
    version='1.0.0',
    license='MIT',
    description='A bike sharing management server that keeps station occupancy consistent.',
    packages=find_packages(exclude=("tests", "tests.*")),
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=[
        'aiohttp>=3.8',
        'aiohttp-cors',
        'aiohttp-apispec',
        'marshmallow>=3.13,<4',
        'tortoise-orm>=0.19,<1',
        'uvloop',
        'sentry-sdk',
    ],
    extras_require={
        'tests': [
            'pytest',
            'pytest-aiohttp>=1.0',
            'pytest-asyncio',
            'faker',
        ],
    },
    entry_points={
        'console_scripts': ['bms=bms.cli:run'],
    },
)
