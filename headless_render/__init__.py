"""
headless_render: renders URLs or inline HTML to PDF, HTML, or screenshots
through a pool of headless Chromium browsers.
"""
__version__ = "0.1.0"
