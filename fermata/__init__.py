"""
Fermata Quality - Name Quality Evaluation and Ranking

Scores machine-generated band and song names along multiple quality
dimensions, filters them through a context-sensitive adaptive quality
gate, and produces a diversity-aware competitive ranking with
explanations.
"""

__version__ = "0.1.0"
__author__ = "Fermata Team"
