# Processing Package
"""
Coordinate extraction, distance and grid clustering for the demand heatmap.
"""
