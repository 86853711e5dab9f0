"""
FastAPI REST Endpoints
======================

REST API endpoints for HTTP access to the clipping pipeline.

Endpoints:
- GET|POST /v1/clip: Clip a web page to PDF
- GET /health: Health check endpoint
"""
