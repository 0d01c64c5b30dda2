"""
Users module - back-office operator accounts.
"""
