from setuptools import setup, find_packages

setup(
    name='TLEIngest',
    version='0.3',
    packages=find_packages(include=['tle_ingest', 'tle_ingest.*', 'tle_engine', 'tle_engine.*']),
    python_requires='>=3.10',
    install_requires=[
        'Flask',
        'SQLAlchemy>=1.4',
        'psycopg2-binary',
        'pandas',
        'numpy',
        'requests',
        'python-dotenv',
        'skyfield>=1.45',
        'sgp4>=2.20',
        'APScheduler>=3.10,<4',
    ],
    extras_require={
        'tests': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'run_tle_ingest=tle_ingest.run:main'
        ]
    }
)
