"""Install the OAuth2 filter package."""

from setuptools import setup, find_packages

setup(
    name='oauth2-filter',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    py_modules=['wsgi'],
    package_data={'oauth2_filter': ['config.py']},
    install_requires=[
        "flask",
        "werkzeug",
        "requests",
        "cryptography",
        "python-json-logger"
    ],
    extras_require={
        "test": [
            "pytest",
            "hypothesis"
        ]
    },
    zip_safe=False
)
