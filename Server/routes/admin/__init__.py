"""
WikiAPI Server - Admin Route Modules
"""
