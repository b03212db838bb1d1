"""
Utilities Package - India Live AQI
Configuration, failure kinds, geo math, naming and time helpers
"""
