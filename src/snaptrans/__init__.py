# SnapTrans - Select-to-Translate

"""
Cross-platform desktop helper that translates selected text.
Streams translations from a remote LLM or a local offline engine.
"""

__version__ = "0.1.0"
__app_name__ = "SnapTrans"
