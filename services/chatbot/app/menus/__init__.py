"""
CFC Push Chatbot - Menus Module

Menu tree models, read-only store access and the in-memory menu cache.
"""
