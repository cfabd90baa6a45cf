"""
Admin dashboard API blueprints.
"""
