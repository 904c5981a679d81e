"""Realtime chat fan-out"""
