"""
dr-gen — lightweight decision records with tamper-evident outputs.
"""

__version__ = "0.1.0"
