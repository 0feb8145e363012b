"""
Configuration package.

Settings, protocol constants and database engine factories.
"""
