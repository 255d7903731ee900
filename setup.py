#!/usr/bin/env python

# In this form, setup.py is a stub to indicate
# this repository contains a python package.
# See pyproject.toml and consider managing builds with poetry.

from setuptools import setup


if __name__ == "__main__":
    setup(name="modelperf")
