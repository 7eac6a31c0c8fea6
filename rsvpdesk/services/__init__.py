"""
Services
Business logic behind the public and admin routes
"""
