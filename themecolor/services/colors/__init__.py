"""
ThemeColor Colors Module

Provides color parsing and conversion, WCAG contrast checks, color vision
deficiency simulation and median-cut palette extraction for theme design.
"""

__version__ = "1.0.0"
