# File: poseidon2/__init__.py
# Location: poseidon2/poseidon2/__init__.py

"""
poseidon2 Package.

This package merges genotype data and janno metadata from several Poseidon
module directories into one dataset, keeping the sample order of the merged
genotypes and the merged metadata identical, and submits the PLINK and
convertf work to a batch scheduler.
"""

from .version import __version__
