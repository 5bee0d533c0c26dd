import re
import ast
from setuptools import setup, find_packages

_version_re = re.compile(r'__version__\s+=\s+(.*)')

with open('tagstatsd/__init__.py', 'rb') as f:
    version = str(ast.literal_eval(_version_re.search(
        f.read().decode('utf-8')).group(1)))

with open('README.md', 'rb') as f:
    long_description = f.read().decode('utf-8')

packages = ['tagstatsd']
packages.extend(map(lambda x: 'tagstatsd.{}'.format(x), find_packages('tagstatsd')))

setup(
    name='tagstatsd',
    version=version,
    license='MIT',
    description='Non-blocking statsd client with tag encoding and canary-aware routing.',
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=packages,
    include_package_data=False,
    zip_safe=False,
    platforms='any',
    install_requires=["toml", "python-box", "requests"],
    extras_require={
        'dev': [
            'pytest>=3',
            'mock',
            'pyyaml'
        ],
        'yaml': [
            'pyyaml'
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Monitoring',
        'Topic :: Software Development :: Libraries :: Python Modules'
    ],
    python_requires='>=3.6',
)
