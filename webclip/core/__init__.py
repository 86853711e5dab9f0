"""
Core Business Logic
==================

Core business logic for turning a web page into a PDF clip.

Modules:
- errors: Error taxonomy shared by the pipeline and the API
- presets: Named parameter presets and URL matching
- rewrite: DOM subsetting and rewriting
- fetcher: Remote page download
- gateway: Bounded-concurrency admission to the renderer
- pipeline: Request-to-render orchestration
- rendering: Document renderers
"""
