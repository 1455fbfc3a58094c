"""Core logic for the FHIR Flattener.

The Gradio UI lives in `app.py`. This package contains pure functions that:
- describe tables to extract from FHIR resources (design)
- crack XML bundles into pandas DataFrames (flattening)
- melt indexed multi-valued cells and strip index markers (reshaping)
"""
