"""
Hospital management API: authentication and role-based access control.
"""
__version__ = "1.0.0"
