"""
reading split read alignments from SAM/BAM files with pysam
"""
