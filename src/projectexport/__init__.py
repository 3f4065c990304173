"""
Project Export - A tool for packaging a project for external review.

This package scans a directory tree, filters out build artifacts, binaries
and oversized files, and renders the remaining sources together with a
directory tree into a Markdown, JSON or plain-text export document.
"""

__version__ = "1.0.0"
__author__ = "Project Export Team"
