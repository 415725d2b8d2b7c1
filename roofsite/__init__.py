"""
roofsite - chat, content and lead services for the roofing site builder
"""

__version__ = "1.0.0"
