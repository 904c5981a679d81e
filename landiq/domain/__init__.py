"""Domain models and pure helpers"""
