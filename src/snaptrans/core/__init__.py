# Core module - Business logic

"""
Core functionality for the translation app.
Contains settings, language detection, translation backends, the
translation coordinator, and selection/permission helpers.
"""
