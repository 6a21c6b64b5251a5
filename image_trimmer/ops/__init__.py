"""Use-case / operations layer.

High-level trim workflows invoked by the UI and the command line (single
file, folder batch, database batch). No Qt imports here.
"""
