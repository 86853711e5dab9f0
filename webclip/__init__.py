"""
webclip
=======

A web-page clipping service that fetches a remote page, keeps the part of
its DOM selected by the caller, rewrites it for standalone rendering and
converts the result into a PDF document through a headless browser.

This package provides:
- Parameter model and preset resolution for clipping options
- DOM subset-and-rewrite engine built on BeautifulSoup
- FastAPI endpoint with bounded-concurrency admission to the renderer
- Playwright-based PDF rendering
"""

__version__ = "1.0.0"
__author__ = "webclip Team"
