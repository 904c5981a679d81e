"""Infrastructure - database, schema and environment settings"""
