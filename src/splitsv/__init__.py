"""
holds submodules related to calling structural variant breakpoints from split read alignments
"""
__version__ = '0.1.0'
