"""
Data Models
===========

Pydantic data models for clipping parameters, decoded requests and
service responses.

Models:
- params: Clipping parameter model, its field table and merge rules
- schemas: Request, render and health schemas
"""
