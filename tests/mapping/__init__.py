"""Request/response mapping tests.

Covers:
- Header/content-type classification and charset resolution
- Body serialisation (JSON, text, form, binary) and framing headers
- RequestSpec -> WireRequest and WireResponse -> ResponseSpec mapping
"""
