"""Imagemap Publisher — multi-width imagemap assets for Cloud Storage."""
