"""
LetsRace.cc weekly cycling events email digest
"""

__version__ = "1.0.0"
