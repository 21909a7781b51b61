"""
cvtex - curriculum vitae typesetting

Renders a personal CV from structured data into LaTeX and compiles it to PDF
with LuaLaTeX.

Architecture:
- Templating Context: CV data structures, section formatting, document assembly
- Rendering Context: LuaLaTeX compilation and output management
"""

__version__ = "0.1.0"
