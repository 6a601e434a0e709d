from setuptools import setup
from os import path

here = path.abspath(path.dirname(__file__))

setup(
    name='sui-ptb',
    version='0.1.0',
    description='Sui Programmable Transaction Builder',
    long_description="Build, estimate, sign and submit Sui programmable transaction blocks from python",
    # Author details
    author='DaiWei',
    author_email='dw1253464613@gmail.com',
    # Choose your license
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
    python_requires=">=3.8",
    packages=["sui_ptb"],
    install_requires=["pyyaml", "mnemonic", "httpx", "python-dotenv", "pynacl", "base58"],
    extras_require={"test": ["pytest"]},
)
