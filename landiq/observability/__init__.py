"""Observability - structured logging and telemetry"""
