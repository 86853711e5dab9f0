"""
Rendering Module
===============

Document renderers driven by the clipping pipeline.

Components:
- renderer: Renderer protocol, render sources and option mapping
- pdf_generator: Playwright-based PDF generation
"""
