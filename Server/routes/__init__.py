"""
WikiAPI Server - Route Modules
"""
