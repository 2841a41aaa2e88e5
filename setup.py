"""Install the enrollment service."""

from setuptools import setup, find_packages

setup(
    name='enrollment',
    version='0.1.0',
    packages=find_packages(include=['enrollment', 'enrollment.*'],
                           exclude=['*tests*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "pyjwt",
        "bcrypt",
        "wtforms",
        "email-validator",
        "pycountry",
        "python-dateutil",
        "pytz",
        "redis",
        "fakeredis",
        "retry",
        "python-json-logger",
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis",
        ],
    },
    zip_safe=False
)
