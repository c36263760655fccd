from setuptools import setup, find_packages

setup(
    name="dsmove",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[l.strip() for l in open("requirements.txt", encoding="utf-8") if l.strip() and not l.startswith("#")],
    entry_points={"console_scripts": ["dsmove=dsmove.__main__:main"]},
)
