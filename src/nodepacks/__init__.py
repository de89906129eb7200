"""
Bundled node packs.
"""
