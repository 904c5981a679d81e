"""HTTP API - FastAPI app, routes and auth dependencies"""
