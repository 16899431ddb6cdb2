"""
setup.py for image-vault.

Needed because the source tree does not follow the standard layout:
  - image_vault lives under backend/src/image_vault/

pyproject.toml handles metadata; this file maps package dirs.
"""

from setuptools import setup

setup(
    package_dir={
        "image_vault": "backend/src/image_vault",
    },
    packages=[
        "image_vault",
        "image_vault.cli",
        "image_vault.storage",
    ],
)
