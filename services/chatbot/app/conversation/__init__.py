"""
CFC Push Chatbot - Conversation Module

Per-phone navigation state and the menu dialogue engine.
"""
