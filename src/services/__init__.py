"""
Services package: tracker entry point, settings and optional AI enrichment.
"""
