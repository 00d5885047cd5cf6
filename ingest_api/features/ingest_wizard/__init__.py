"""
Ingest wizard feature: multi-page creation of repository objects.
"""
