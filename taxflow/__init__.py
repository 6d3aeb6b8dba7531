"""
taxflow: bulk import of geolocated orders with New York sales-tax
calculation.
"""

__version__ = "0.1.0"
