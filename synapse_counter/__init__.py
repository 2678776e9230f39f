"""
Synaptic colocalization counter.

Segments presynaptic and postsynaptic marker channels, intersects them and
reports particle counts and mean sizes for the three particle sets.
"""

__version__ = "1.0.0"
