"""
Property catalog storage core.
Storage contract with interchangeable relational and JSON file backends.
"""
