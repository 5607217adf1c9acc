"""
L0 Data — static installer data (packages, repositories, file names).
"""
