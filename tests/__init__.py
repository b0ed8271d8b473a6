#!/usr/bin/env python
# coding=utf-8
"""Test base files
"""
import os


def touch(path):
    """Create a file, and its parent directories. Different from the system
    'touch' in that it will overwrite an existing file.
    """
    parent_dir = os.path.dirname(path)
    os.makedirs(parent_dir, exist_ok=True)
    with open(path, "w") as fh:
        print(path, file=fh, end="")


async def noop_async(*args, **kwargs):
    pass
